"""
Room lifecycle state machine.

All status changes of a Room go through ``transition``. The function is pure:
it takes the current status, the event and the post-event member count, and
returns the next status or raises InvalidRoomTransitionException.

    inactive --(join, count >= activation)--> active
    active   --(lock)-------------------------> locked
    locked   --(unlock)-----------------------> active
    any      --(leave, count < minimum)-------> deleted
    any      --(founder leaves)----------------> deleted
    deleted is terminal
"""

import enum

from app.core.config import settings
from app.core.exceptions import InvalidRoomTransitionException
from app.models.room import RoomStatus


class RoomEvent(enum.Enum):
    """Events that may move a room between states."""

    MEMBER_JOINED = "member_joined"
    MEMBER_LEFT = "member_left"
    FOUNDER_LEFT = "founder_left"
    LOCK = "lock"
    UNLOCK = "unlock"


def initial_status(total_members: int, activation_threshold: int | None = None) -> RoomStatus:
    """Status of a freshly created room with ``total_members`` founders."""
    threshold = activation_threshold if activation_threshold is not None else settings.room_activation_members
    return RoomStatus.ACTIVE if total_members >= threshold else RoomStatus.INACTIVE


def transition(
    current: RoomStatus,
    event: RoomEvent,
    member_count: int,
    min_members: int | None = None,
    activation_threshold: int | None = None,
) -> RoomStatus:
    """
    Compute the next room status.
    :param current: Status before the event
    :param event: Event being applied
    :param member_count: Member count after the event
    :param min_members: Count below which a room is deleted
    :param activation_threshold: Count at which an inactive room activates
    :return: Next status
    """
    minimum = min_members if min_members is not None else settings.room_min_members
    activation = activation_threshold if activation_threshold is not None else settings.room_activation_members

    if current == RoomStatus.DELETED:
        raise InvalidRoomTransitionException(current.value, event.value)

    if event == RoomEvent.MEMBER_JOINED:
        if current == RoomStatus.INACTIVE and member_count >= activation:
            return RoomStatus.ACTIVE
        return current

    if event == RoomEvent.MEMBER_LEFT:
        if member_count < minimum:
            return RoomStatus.DELETED
        return current

    if event == RoomEvent.FOUNDER_LEFT:
        return RoomStatus.DELETED

    if event == RoomEvent.LOCK:
        if current != RoomStatus.ACTIVE:
            raise InvalidRoomTransitionException(current.value, event.value)
        return RoomStatus.LOCKED

    if event == RoomEvent.UNLOCK:
        if current != RoomStatus.LOCKED:
            raise InvalidRoomTransitionException(current.value, event.value)
        return RoomStatus.ACTIVE

    raise InvalidRoomTransitionException(current.value, str(event))
