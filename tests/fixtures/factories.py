"""
Factories that persist ready-to-use rows.

Every factory commits, so the rows are visible to the services under test,
and always sets timestamps explicitly instead of relying on server defaults.
"""

from datetime import datetime, timedelta, timezone
from itertools import count

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.post_reply import PostReply
from app.models.room import Room, RoomStatus
from app.models.room_member import RoomMember
from app.models.room_post import RoomPost

_sequence = count(1)

BASE_TIME = datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)


def member_pseudos(total: int, founder: str = "founder") -> list[str]:
    """Founder followed by ``total - 1`` generated pseudos."""
    return [founder] + [f"member_{i}" for i in range(1, total)]


class RoomFactory:
    """Create rooms together with their roster."""

    @staticmethod
    async def create(
        db: AsyncSession,
        name: str | None = None,
        founder: str = "founder",
        total_members: int = 6,
        status: RoomStatus | None = None,
        member_count: int | None = None,
        is_locked: bool = False,
        lock_reason: str | None = None,
        created_at: datetime = BASE_TIME,
    ) -> Room:
        """
        Create a room with ``total_members`` roster rows, founder included.
        :param member_count: Cached counter, defaults to the roster size
        :param status: Defaults to active from ten members, inactive below
        """
        if status is None:
            status = RoomStatus.ACTIVE if total_members >= 10 else RoomStatus.INACTIVE

        room = Room(
            name=name or f"Room {next(_sequence)}",
            created_by=founder,
            member_count=total_members if member_count is None else member_count,
            status=status,
            activity_score=0,
            is_locked=is_locked,
            lock_reason=lock_reason,
            created_at=created_at,
        )
        db.add(room)
        await db.flush()

        for pseudo in member_pseudos(total_members, founder):
            is_founder = pseudo == founder
            db.add(
                RoomMember(
                    room_id=room.id,
                    user_pseudo=pseudo,
                    joined_at=created_at,
                    is_founder=is_founder,
                    is_moderator=is_founder,
                    post_count=0,
                )
            )

        await db.commit()
        return room

    @staticmethod
    async def create_active(db: AsyncSession, **kwargs) -> Room:
        kwargs.setdefault("total_members", 10)
        return await RoomFactory.create(db, status=RoomStatus.ACTIVE, **kwargs)

    @staticmethod
    async def create_locked(db: AsyncSession, lock_reason: str = "Low activity", **kwargs) -> Room:
        kwargs.setdefault("total_members", 10)
        return await RoomFactory.create(
            db,
            status=RoomStatus.LOCKED,
            is_locked=True,
            lock_reason=lock_reason,
            **kwargs,
        )


class PostFactory:
    """Create posts directly, bypassing membership bookkeeping."""

    @staticmethod
    async def create(
        db: AsyncSession,
        room: Room,
        author_pseudo: str = "founder",
        title: str | None = None,
        content: str = "Looking for someone to talk to",
        created_at: datetime = BASE_TIME,
        expires_at: datetime | None = None,
        lifetime_days: int | None = 30,
        no_expiry: bool = False,
        is_pinned: bool = False,
        is_expired: bool = False,
        deleted_at: datetime | None = None,
    ) -> RoomPost:
        """
        Create a post; expires_at defaults to created_at + lifetime_days.
        :param no_expiry: Create a permanent post (expires_at and lifetime_days null)
        """
        if no_expiry:
            expires_at = None
            lifetime_days = None
        elif expires_at is None:
            expires_at = created_at + timedelta(days=lifetime_days or 30)

        post = RoomPost(
            room_id=room.id,
            author_pseudo=author_pseudo,
            title=title or f"Post {next(_sequence)}",
            content=content,
            created_at=created_at,
            expires_at=expires_at,
            lifetime_days=lifetime_days,
            is_pinned=is_pinned,
            is_expired=is_expired,
            deleted_at=deleted_at,
        )
        db.add(post)
        await db.commit()
        return post


class ReplyFactory:
    """Create replies on a post."""

    @staticmethod
    async def create(
        db: AsyncSession,
        post: RoomPost,
        author_pseudo: str = "member_1",
        content: str = "You are not alone",
        created_at: datetime = BASE_TIME,
    ) -> PostReply:
        reply = PostReply(
            post_id=post.id,
            author_pseudo=author_pseudo,
            content=content,
            created_at=created_at,
        )
        db.add(reply)
        await db.commit()
        return reply

    @staticmethod
    async def create_many(
        db: AsyncSession,
        post: RoomPost,
        total: int,
        created_at: datetime = BASE_TIME,
    ) -> list[PostReply]:
        replies = [
            PostReply(
                post_id=post.id,
                author_pseudo=f"member_{(i % 5) + 1}",
                content=f"Reply {i}",
                created_at=created_at,
            )
            for i in range(total)
        ]
        db.add_all(replies)
        await db.commit()
        return replies
