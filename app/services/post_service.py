from datetime import datetime, timedelta

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import ensure_utc, utcnow
from app.core.config import Settings, settings
from app.core.constants import DEFAULT_USER_EXPIRING_WINDOW_DAYS
from app.core.exceptions import (
    NotMemberException,
    PostNotFoundException,
    RoomNotFoundException,
    ValidationException,
)
from app.core.unit_of_work import transaction
from app.models.post_reply import PostReply
from app.models.room_post import RoomPost
from app.repositories.post_repository import IPostRepository
from app.repositories.room_repository import IRoomRepository
from app.schemas.post_schemas import ExpiringPost, ExpiringPostsGrouped, PostUpdateResult

logger = structlog.get_logger(__name__)


class PostService:
    """Service for room posts: creation, author-side expiry control and listings."""

    def __init__(
        self,
        db: AsyncSession,
        post_repo: IPostRepository,
        room_repo: IRoomRepository,
        config: Settings = settings,
    ):
        self.db = db
        self.post_repo = post_repo
        self.room_repo = room_repo
        self.config = config

    async def create_post(
        self,
        room_id: int,
        author_pseudo: str,
        title: str,
        content: str,
        lifetime_days: int | None = None,
        now: datetime | None = None,
    ) -> RoomPost:
        """
        Create a post and record the author's activity on their membership.

        Both writes are one unit of work: a post never exists without the
        author's last_post_at/post_count reflecting it.
        :param room_id: Room to post in
        :param author_pseudo: Author, must be a member of the room
        :param lifetime_days: Days until expiry, defaults to the configured lifetime
        :return: Created post
        """
        lifetime_days = lifetime_days if lifetime_days is not None else self.config.post_default_lifetime_days
        if lifetime_days < 1:
            raise ValidationException("lifetime_days must be at least 1")

        now = now or utcnow()

        async with transaction(self.db, "create_post"):
            # Row lock serializes with a concurrent cascading room deletion.
            room = await self.room_repo.get_by_id_for_update(room_id)
            if room is None:
                raise RoomNotFoundException(room_id)

            member = await self.room_repo.get_member(room_id, author_pseudo, for_update=True)
            if member is None:
                raise NotMemberException(room_id, author_pseudo)

            post = RoomPost(
                room_id=room_id,
                author_pseudo=author_pseudo,
                title=title,
                content=content,
                created_at=now,
                expires_at=now + timedelta(days=lifetime_days),
                lifetime_days=lifetime_days,
                is_pinned=False,
                is_expired=False,
            )
            await self.post_repo.create(post)
            await self.room_repo.record_post(member, now)

        logger.info("post_created", post_id=post.id, room_id=room_id, author=author_pseudo, lifetime_days=lifetime_days)
        return post

    async def extend_expiration(self, post_id: int, additional_days: int) -> PostUpdateResult:
        """
        Push a post's expiry back by ``additional_days``.

        Returns affected=False instead of raising when the post is deleted,
        missing, or set to never expire.
        """
        if additional_days < 1:
            raise ValidationException("additional_days must be at least 1")

        async with transaction(self.db, "extend_expiration"):
            post = await self.post_repo.get_by_id_for_update(post_id)
            if post is None or post.expires_at is None:
                return PostUpdateResult(post_id=post_id, affected=False)

            post.expires_at = ensure_utc(post.expires_at) + timedelta(days=additional_days)
            post.lifetime_days = (post.lifetime_days or 0) + additional_days

        logger.info("post_expiration_extended", post_id=post_id, additional_days=additional_days)
        return PostUpdateResult(
            post_id=post_id,
            affected=True,
            expires_at=post.expires_at,
            lifetime_days=post.lifetime_days,
        )

    async def bulk_extend_expiration(self, post_ids: list[int], additional_days: int) -> int:
        """Extend several posts at once. Returns how many were updated."""
        if additional_days < 1:
            raise ValidationException("additional_days must be at least 1")
        if not post_ids:
            return 0

        async with transaction(self.db, "bulk_extend_expiration"):
            posts = await self.post_repo.get_many_for_update(post_ids)
            updated = 0
            for post in posts:
                if post.expires_at is None:
                    continue
                post.expires_at = ensure_utc(post.expires_at) + timedelta(days=additional_days)
                post.lifetime_days = (post.lifetime_days or 0) + additional_days
                updated += 1

        logger.info("posts_bulk_extended", requested=len(post_ids), updated=updated, additional_days=additional_days)
        return updated

    async def disable_expiration(self, post_id: int, reason: str) -> RoomPost:
        """Make a post permanent. The sweep never selects it afterwards."""
        async with transaction(self.db, "disable_expiration"):
            post = await self._get_post_for_update_or_404(post_id)
            post.expires_at = None
            post.no_expire_reason = reason

        logger.info("post_expiration_disabled", post_id=post_id, reason=reason)
        return post

    async def set_pinned(self, post_id: int, is_pinned: bool) -> RoomPost:
        async with transaction(self.db, "set_pinned"):
            post = await self._get_post_for_update_or_404(post_id)
            post.is_pinned = is_pinned

        logger.info("post_pin_changed", post_id=post_id, is_pinned=is_pinned)
        return post

    async def delete_post(self, post_id: int, now: datetime | None = None) -> RoomPost:
        """Soft-delete a post on author request."""
        async with transaction(self.db, "delete_post"):
            post = await self._get_post_for_update_or_404(post_id)
            post.deleted_at = now or utcnow()

        logger.info("post_deleted", post_id=post_id)
        return post

    async def add_reply(self, post_id: int, author_pseudo: str, content: str, now: datetime | None = None) -> PostReply:
        """Reply to a live post. The author must belong to the post's room."""
        now = now or utcnow()

        async with transaction(self.db, "add_reply"):
            post = await self.post_repo.get_by_id(post_id)
            if post is None or post.is_expired:
                raise PostNotFoundException(post_id)
            if await self.room_repo.get_member(post.room_id, author_pseudo) is None:
                raise NotMemberException(post.room_id, author_pseudo)

            reply = await self.post_repo.create_reply(
                PostReply(post_id=post_id, author_pseudo=author_pseudo, content=content, created_at=now)
            )

        return reply

    async def get_room_posts(self, room_id: int, include_expired: bool = False) -> list[RoomPost]:
        if not await self.room_repo.exists(room_id):
            raise RoomNotFoundException(room_id)
        return await self.post_repo.get_room_posts(room_id, include_expired)

    async def get_expiring_posts(self, days: int, now: datetime | None = None) -> list[ExpiringPost]:
        """Live posts whose expiry falls within the next ``days`` days."""
        now = now or utcnow()
        rows = await self.post_repo.get_expiring_posts(now, now + timedelta(days=days))
        return [self._to_expiring(post, room_name, now) for post, room_name in rows]

    async def get_user_expiring_posts(
        self,
        author_pseudo: str,
        days: int = DEFAULT_USER_EXPIRING_WINDOW_DAYS,
        now: datetime | None = None,
    ) -> ExpiringPostsGrouped:
        """
        An author's posts expiring within ``days`` days, bucketed by urgency.

        Buckets use calendar-day distance in UTC: negative is expired, 0 today,
        1 tomorrow, anything later this_week.
        """
        now = now or utcnow()
        rows = await self.post_repo.get_user_expiring_posts(author_pseudo, now + timedelta(days=days))

        grouped = ExpiringPostsGrouped()
        for post, room_name in rows:
            item = self._to_expiring(post, room_name, now)
            if item.days_until_expiration < 0:
                grouped.expired.append(item)
            elif item.days_until_expiration == 0:
                grouped.today.append(item)
            elif item.days_until_expiration == 1:
                grouped.tomorrow.append(item)
            else:
                grouped.this_week.append(item)
        return grouped

    @staticmethod
    def _to_expiring(post: RoomPost, room_name: str, now: datetime) -> ExpiringPost:
        expires_at = ensure_utc(post.expires_at)
        return ExpiringPost(
            id=post.id,
            room_id=post.room_id,
            room_name=room_name,
            author_pseudo=post.author_pseudo,
            title=post.title,
            expires_at=expires_at,
            days_until_expiration=(expires_at.date() - now.date()).days,
        )

    async def _get_post_for_update_or_404(self, post_id: int) -> RoomPost:
        post = await self.post_repo.get_by_id_for_update(post_id)
        if post is None:
            raise PostNotFoundException(post_id)
        return post
