from abc import abstractmethod
from datetime import datetime

from sqlalchemy import and_, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.post_reply import PostReply
from app.models.room import Room
from app.models.room_post import RoomPost
from app.repositories.base_repository import BaseRepository


class IPostRepository(BaseRepository[RoomPost]):
    """Abstract interface for RoomPost repository."""

    @abstractmethod
    async def get_by_id_for_update(self, post_id: int) -> RoomPost | None:
        """Get non-deleted post by ID, locking the row until the transaction ends."""
        pass

    @abstractmethod
    async def get_many_for_update(self, post_ids: list[int]) -> list[RoomPost]:
        """Get non-deleted posts by ID, locking the rows."""
        pass

    @abstractmethod
    async def get_room_posts(self, room_id: int, include_expired: bool = False) -> list[RoomPost]:
        """Get room posts, pinned first then newest first."""
        pass

    @abstractmethod
    async def get_expiry_candidate_ids(self, now: datetime, after_id: int = 0, limit: int = 100) -> list[int]:
        """
        Get IDs of posts due for an expiry decision.
        Keyset-paginated by ID so one sweep never revisits a post.
        """
        pass

    @abstractmethod
    async def count_recent_replies(self, post_id: int, since: datetime) -> int:
        """Count non-deleted replies to a post created at or after ``since``."""
        pass

    @abstractmethod
    async def soft_delete_replies(self, post_id: int, deleted_at: datetime) -> int:
        """Soft-delete every live reply of a post."""
        pass

    @abstractmethod
    async def soft_delete_room_posts(self, room_id: int, deleted_at: datetime) -> int:
        """Soft-delete every live post of a room."""
        pass

    @abstractmethod
    async def count_unique_posters(self, room_id: int, since: datetime) -> int:
        """Count distinct authors of live posts in a room since a point in time."""
        pass

    @abstractmethod
    async def get_expiring_posts(self, start: datetime, end: datetime) -> list[tuple[RoomPost, str]]:
        """Get live posts expiring within [start, end], with their room name."""
        pass

    @abstractmethod
    async def get_user_expiring_posts(self, author_pseudo: str, until: datetime) -> list[tuple[RoomPost, str]]:
        """Get an author's live posts expiring on or before ``until``, with room name."""
        pass

    @abstractmethod
    async def create_reply(self, reply: PostReply) -> PostReply:
        """Insert a reply."""
        pass


class PostRepository(IPostRepository):
    """SQLAlchemy implementation of RoomPost repository."""

    def __init__(self, db: AsyncSession):
        """
        Initialize with async database session.
        :param db: SQLAlchemy async database session
        """
        super().__init__(db)

    async def get_by_id(self, id: int) -> RoomPost | None:
        """Get non-deleted post by ID."""
        query = select(RoomPost).where(and_(RoomPost.id == id, RoomPost.deleted_at.is_(None)))
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_by_id_for_update(self, post_id: int) -> RoomPost | None:
        query = (
            select(RoomPost)
            .where(and_(RoomPost.id == post_id, RoomPost.deleted_at.is_(None)))
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_many_for_update(self, post_ids: list[int]) -> list[RoomPost]:
        if not post_ids:
            return []
        query = (
            select(RoomPost)
            .where(and_(RoomPost.id.in_(post_ids), RoomPost.deleted_at.is_(None)))
            .order_by(RoomPost.id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_all(self, limit: int = 100, offset: int = 0) -> list[RoomPost]:
        query = select(RoomPost).order_by(RoomPost.id).limit(limit).offset(offset)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def create(self, post: RoomPost) -> RoomPost:
        self.db.add(post)
        await self.db.flush()
        return post

    async def exists(self, id: int) -> bool:
        post = await self.get_by_id(id)
        return post is not None

    async def get_room_posts(self, room_id: int, include_expired: bool = False) -> list[RoomPost]:
        query = select(RoomPost).where(and_(RoomPost.room_id == room_id, RoomPost.deleted_at.is_(None)))
        if not include_expired:
            query = query.where(RoomPost.is_expired.is_(False))
        query = query.order_by(RoomPost.is_pinned.desc(), RoomPost.created_at.desc(), RoomPost.id.desc())
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_expiry_candidate_ids(self, now: datetime, after_id: int = 0, limit: int = 100) -> list[int]:
        query = (
            select(RoomPost.id)
            .where(
                and_(
                    RoomPost.id > after_id,
                    RoomPost.expires_at.is_not(None),
                    RoomPost.expires_at <= now,
                    RoomPost.is_expired.is_(False),
                    RoomPost.deleted_at.is_(None),
                )
            )
            .order_by(RoomPost.id)
            .limit(limit)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def count_recent_replies(self, post_id: int, since: datetime) -> int:
        query = select(func.count(PostReply.id)).where(
            and_(
                PostReply.post_id == post_id,
                PostReply.created_at >= since,
                PostReply.deleted_at.is_(None),
            )
        )
        result = await self.db.execute(query)
        return result.scalar() or 0

    async def soft_delete_replies(self, post_id: int, deleted_at: datetime) -> int:
        query = (
            update(PostReply)
            .where(and_(PostReply.post_id == post_id, PostReply.deleted_at.is_(None)))
            .values(deleted_at=deleted_at)
            .execution_options(synchronize_session="fetch")
        )
        result = await self.db.execute(query)
        return result.rowcount or 0

    async def soft_delete_room_posts(self, room_id: int, deleted_at: datetime) -> int:
        query = (
            update(RoomPost)
            .where(and_(RoomPost.room_id == room_id, RoomPost.deleted_at.is_(None)))
            .values(deleted_at=deleted_at)
            .execution_options(synchronize_session="fetch")
        )
        result = await self.db.execute(query)
        return result.rowcount or 0

    async def count_unique_posters(self, room_id: int, since: datetime) -> int:
        query = select(func.count(func.distinct(RoomPost.author_pseudo))).where(
            and_(
                RoomPost.room_id == room_id,
                RoomPost.created_at >= since,
                RoomPost.deleted_at.is_(None),
            )
        )
        result = await self.db.execute(query)
        return result.scalar() or 0

    async def get_expiring_posts(self, start: datetime, end: datetime) -> list[tuple[RoomPost, str]]:
        query = (
            select(RoomPost, Room.name)
            .join(Room, Room.id == RoomPost.room_id)
            .where(
                and_(
                    RoomPost.expires_at.between(start, end),
                    RoomPost.is_expired.is_(False),
                    RoomPost.deleted_at.is_(None),
                )
            )
            .order_by(RoomPost.expires_at.asc())
        )
        result = await self.db.execute(query)
        return [(post, room_name) for post, room_name in result.all()]

    async def get_user_expiring_posts(self, author_pseudo: str, until: datetime) -> list[tuple[RoomPost, str]]:
        query = (
            select(RoomPost, Room.name)
            .join(Room, Room.id == RoomPost.room_id)
            .where(
                and_(
                    RoomPost.author_pseudo == author_pseudo,
                    RoomPost.expires_at.is_not(None),
                    RoomPost.expires_at <= until,
                    RoomPost.is_expired.is_(False),
                    RoomPost.deleted_at.is_(None),
                )
            )
            .order_by(RoomPost.expires_at.asc())
        )
        result = await self.db.execute(query)
        return [(post, room_name) for post, room_name in result.all()]

    async def create_reply(self, reply: PostReply) -> PostReply:
        self.db.add(reply)
        await self.db.flush()
        return reply
