"""Unit tests for the room lifecycle state machine."""

import pytest

from app.core.exceptions import InvalidRoomTransitionException
from app.models.room import RoomStatus
from app.services.room_state_machine import RoomEvent, initial_status, transition


@pytest.mark.unit
class TestInitialStatus:
    def test_below_activation_threshold_is_inactive(self):
        assert initial_status(6, activation_threshold=10) == RoomStatus.INACTIVE
        assert initial_status(9, activation_threshold=10) == RoomStatus.INACTIVE

    def test_at_activation_threshold_is_active(self):
        assert initial_status(10, activation_threshold=10) == RoomStatus.ACTIVE
        assert initial_status(25, activation_threshold=10) == RoomStatus.ACTIVE


@pytest.mark.unit
class TestTransition:
    """Status changes driven by membership and moderation events."""

    def test_join_activates_inactive_room_at_threshold(self):
        result = transition(RoomStatus.INACTIVE, RoomEvent.MEMBER_JOINED, 10, 6, 10)

        assert result == RoomStatus.ACTIVE

    def test_join_below_threshold_keeps_room_inactive(self):
        result = transition(RoomStatus.INACTIVE, RoomEvent.MEMBER_JOINED, 9, 6, 10)

        assert result == RoomStatus.INACTIVE

    def test_join_does_not_unlock_locked_room(self):
        result = transition(RoomStatus.LOCKED, RoomEvent.MEMBER_JOINED, 15, 6, 10)

        assert result == RoomStatus.LOCKED

    @pytest.mark.parametrize("status", [RoomStatus.INACTIVE, RoomStatus.ACTIVE, RoomStatus.LOCKED])
    def test_leave_below_minimum_deletes_room(self, status):
        result = transition(status, RoomEvent.MEMBER_LEFT, 5, 6, 10)

        assert result == RoomStatus.DELETED

    def test_leave_at_minimum_keeps_status(self):
        assert transition(RoomStatus.ACTIVE, RoomEvent.MEMBER_LEFT, 6, 6, 10) == RoomStatus.ACTIVE
        assert transition(RoomStatus.INACTIVE, RoomEvent.MEMBER_LEFT, 6, 6, 10) == RoomStatus.INACTIVE

    @pytest.mark.parametrize("status", [RoomStatus.INACTIVE, RoomStatus.ACTIVE, RoomStatus.LOCKED])
    def test_founder_leaving_deletes_room_at_any_size(self, status):
        result = transition(status, RoomEvent.FOUNDER_LEFT, 20, 6, 10)

        assert result == RoomStatus.DELETED

    def test_active_room_does_not_deactivate_when_shrinking(self):
        result = transition(RoomStatus.ACTIVE, RoomEvent.MEMBER_LEFT, 8, 6, 10)

        assert result == RoomStatus.ACTIVE

    def test_lock_and_unlock_round_trip(self):
        locked = transition(RoomStatus.ACTIVE, RoomEvent.LOCK, 12)
        unlocked = transition(locked, RoomEvent.UNLOCK, 12)

        assert locked == RoomStatus.LOCKED
        assert unlocked == RoomStatus.ACTIVE

    @pytest.mark.parametrize("status", [RoomStatus.INACTIVE, RoomStatus.LOCKED])
    def test_lock_requires_active_room(self, status):
        with pytest.raises(InvalidRoomTransitionException):
            transition(status, RoomEvent.LOCK, 12)

    @pytest.mark.parametrize("status", [RoomStatus.INACTIVE, RoomStatus.ACTIVE])
    def test_unlock_requires_locked_room(self, status):
        with pytest.raises(InvalidRoomTransitionException):
            transition(status, RoomEvent.UNLOCK, 12)

    @pytest.mark.parametrize("event", list(RoomEvent))
    def test_deleted_is_terminal(self, event):
        with pytest.raises(InvalidRoomTransitionException) as exc_info:
            transition(RoomStatus.DELETED, event, 20, 6, 10)

        assert exc_info.value.current_status == "deleted"
