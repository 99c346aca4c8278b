"""Unit tests for ActivityMonitor."""

from datetime import timedelta

import pytest

from app.core.exceptions import RoomNotFoundException


@pytest.mark.unit
class TestActivityMonitor:
    async def test_room_with_enough_unique_posters_meets_requirement(
        self, activity_monitor, room_factory, post_factory, db_session, now
    ):
        # Arrange
        room = await room_factory.create_active(db_session)
        for author in ["founder", "member_1", "member_2", "member_3"]:
            await post_factory.create(db_session, room, author_pseudo=author, created_at=now - timedelta(hours=5))

        # Act
        report = await activity_monitor.check_activity(room.id, now=now)

        # Assert
        assert report.room_id == room.id
        assert report.unique_posters == 4
        assert report.meets_requirement is True
        assert report.checked_at == now

    async def test_repeat_posts_by_one_author_count_once(
        self, activity_monitor, room_factory, post_factory, db_session, now
    ):
        # Arrange
        room = await room_factory.create_active(db_session)
        for hours in (1, 2, 3, 4, 5):
            await post_factory.create(db_session, room, author_pseudo="member_1", created_at=now - timedelta(hours=hours))
        await post_factory.create(db_session, room, author_pseudo="member_2", created_at=now - timedelta(hours=1))

        # Act
        report = await activity_monitor.check_activity(room.id, now=now)

        # Assert
        assert report.unique_posters == 2
        assert report.meets_requirement is False

    async def test_posts_outside_window_and_deleted_posts_are_ignored(
        self, activity_monitor, room_factory, post_factory, db_session, now
    ):
        # Arrange
        room = await room_factory.create_active(db_session)
        await post_factory.create(db_session, room, author_pseudo="founder", created_at=now - timedelta(hours=1))
        await post_factory.create(db_session, room, author_pseudo="member_1", created_at=now - timedelta(hours=2))
        await post_factory.create(db_session, room, author_pseudo="member_2", created_at=now - timedelta(hours=73))
        await post_factory.create(
            db_session,
            room,
            author_pseudo="member_3",
            created_at=now - timedelta(hours=3),
            deleted_at=now - timedelta(hours=2),
        )

        # Act
        report = await activity_monitor.check_activity(room.id, now=now)

        # Assert
        assert report.unique_posters == 2
        assert report.meets_requirement is False

    async def test_check_stores_score_on_room(self, activity_monitor, room_factory, post_factory, db_session, now):
        # Arrange
        room = await room_factory.create_active(db_session)
        await post_factory.create(db_session, room, author_pseudo="member_4", created_at=now - timedelta(hours=1))

        # Act
        await activity_monitor.check_activity(room.id, now=now)

        # Assert
        await db_session.refresh(room)
        assert room.activity_score == 1
        assert room.last_activity_check.replace(tzinfo=None) == now.replace(tzinfo=None)

    async def test_missing_room_raises(self, activity_monitor):
        with pytest.raises(RoomNotFoundException):
            await activity_monitor.check_activity(404)
