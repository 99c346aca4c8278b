import time
from datetime import datetime, timedelta

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import ensure_utc, utcnow
from app.core.config import Settings, settings
from app.core.constants import ACTIVE_DISCUSSION_REASON
from app.core.exceptions import DomainException
from app.core.unit_of_work import transaction
from app.interfaces.notification_sink import INotificationSink, NotificationEvent
from app.repositories.post_repository import IPostRepository
from app.schemas.post_schemas import SweepReport

logger = structlog.get_logger(__name__)

EXTENDED = "extended"
EXPIRED = "expired"
SKIPPED = "skipped"


class ExpirationSweeper:
    """
    Recurring batch process that finalizes or extends posts past their expiry.

    The sweeper is the only writer of RoomPost.is_expired. Each post is
    decided in its own transaction after re-reading the row under lock, so a
    crash or a failing post leaves every other decision intact, and a post
    already finalized is never touched again.
    """

    def __init__(
        self,
        db: AsyncSession,
        post_repo: IPostRepository,
        notification_sink: INotificationSink,
        config: Settings = settings,
    ):
        self.db = db
        self.post_repo = post_repo
        self.notification_sink = notification_sink
        self.config = config

    async def run_sweep(self, now: datetime | None = None) -> SweepReport:
        """
        Process every post due for expiry, in bounded batches.
        :param now: Reference time, defaults to current UTC time
        :return: Summary of the decisions taken
        """
        now = now or utcnow()
        started = time.monotonic()
        report = SweepReport(started_at=now)
        expired_authors: dict[int, dict] = {}

        logger.info(
            "sweep_started",
            batch_size=self.config.sweep_batch_size,
            max_posts=self.config.sweep_max_posts_per_run,
        )

        last_id = 0
        while True:
            remaining = self.config.sweep_max_posts_per_run - report.scanned
            if remaining <= 0:
                backlog = await self.post_repo.get_expiry_candidate_ids(now, after_id=last_id, limit=1)
                await self.db.commit()
                report.budget_exhausted = bool(backlog)
                break

            candidate_ids = await self.post_repo.get_expiry_candidate_ids(
                now, after_id=last_id, limit=min(self.config.sweep_batch_size, remaining)
            )
            # End the read-only transaction opened by the candidate query.
            await self.db.commit()
            if not candidate_ids:
                break

            for post_id in candidate_ids:
                report.scanned += 1
                last_id = post_id
                try:
                    outcome, replies_deleted, author_info = await self._decide(post_id, now)
                except DomainException as e:
                    report.failed_post_ids.append(post_id)
                    logger.error("sweep_post_failed", post_id=post_id, error=e.message)
                    continue

                if outcome == EXTENDED:
                    report.extended_post_ids.append(post_id)
                elif outcome == EXPIRED:
                    report.expired_post_ids.append(post_id)
                    report.replies_deleted += replies_deleted
                    expired_authors[post_id] = author_info
                else:
                    report.skipped += 1

        report.duration_ms = round((time.monotonic() - started) * 1000, 2)
        logger.info(
            "sweep_completed",
            scanned=report.scanned,
            extended=len(report.extended_post_ids),
            expired=len(report.expired_post_ids),
            failed=len(report.failed_post_ids),
            skipped=report.skipped,
            replies_deleted=report.replies_deleted,
            budget_exhausted=report.budget_exhausted,
            duration_ms=report.duration_ms,
        )

        for post_id, info in expired_authors.items():
            await self._notify(info["author_pseudo"], NotificationEvent.POST_EXPIRED, {"post_id": post_id, **info})

        return report

    async def notify_expiring_posts(self, days: int | None = None, now: datetime | None = None) -> int:
        """
        Warn authors whose posts will expire within ``days`` days.
        :return: Number of notifications handed to the sink
        """
        days = days if days is not None else self.config.expiring_notice_days
        now = now or utcnow()

        rows = await self.post_repo.get_expiring_posts(now, now + timedelta(days=days))
        await self.db.commit()

        for post, room_name in rows:
            await self._notify(
                post.author_pseudo,
                NotificationEvent.POST_EXPIRING,
                {
                    "post_id": post.id,
                    "post_title": post.title,
                    "room_name": room_name,
                    "expires_at": ensure_utc(post.expires_at).isoformat(),
                },
            )

        logger.info("expiring_posts_notified", count=len(rows), days=days)
        return len(rows)

    async def _decide(self, post_id: int, now: datetime) -> tuple[str, int, dict]:
        """
        Decide one post inside its own transaction.
        :return: Outcome, number of replies soft-deleted, author info for notification
        """
        async with transaction(self.db, "sweep_post"):
            post = await self.post_repo.get_by_id_for_update(post_id)

            # Re-check the selection predicate on the locked row.
            if (
                post is None
                or post.is_expired
                or post.expires_at is None
                or ensure_utc(post.expires_at) > now
            ):
                return SKIPPED, 0, {}

            since = now - timedelta(hours=self.config.sweep_reply_window_hours)
            recent_replies = await self.post_repo.count_recent_replies(post_id, since)

            if recent_replies >= self.config.sweep_active_reply_threshold:
                post.expires_at = now + timedelta(days=self.config.sweep_extension_days)
                post.extension_reason = ACTIVE_DISCUSSION_REASON
                logger.info("post_expiry_extended", post_id=post_id, recent_replies=recent_replies)
                return EXTENDED, 0, {}

            post.is_expired = True
            post.deleted_at = now
            replies_deleted = await self.post_repo.soft_delete_replies(post_id, now)
            author_info = {"author_pseudo": post.author_pseudo, "room_id": post.room_id, "post_title": post.title}

        logger.info("post_expired", post_id=post_id, room_id=post.room_id, replies_deleted=replies_deleted)
        return EXPIRED, replies_deleted, author_info

    async def _notify(self, recipient: str, event_kind: NotificationEvent, payload: dict) -> None:
        try:
            await self.notification_sink.notify(recipient, event_kind, payload)
        except Exception as e:
            logger.warning("notification_failed", recipient=recipient, event_kind=event_kind.value, error=str(e))
