"""ARQ task functions for the room and post lifecycle."""

from uuid import uuid4

import structlog
from arq import Retry
from sqlalchemy.exc import SQLAlchemyError

from app.core.arq_db_manager import ARQDatabaseManager, db_session_context
from app.core.clock import utcnow
from app.core.config import settings
from app.core.constants import INSUFFICIENT_ACTIVITY_LOCK_REASON
from app.core.exceptions import DomainException
from app.implementations.arq_notification_sink import ArqNotificationSink
from app.implementations.logging_notification_sink import LoggingNotificationSink
from app.interfaces.notification_sink import INotificationSink
from app.models.room import RoomStatus
from app.models.user_notification import UserNotification
from app.repositories.notification_repository import NotificationRepository
from app.repositories.post_repository import PostRepository
from app.repositories.room_repository import RoomRepository
from app.services.activity_monitor import ActivityMonitor
from app.services.expiration_sweeper import ExpirationSweeper
from app.services.room_service import RoomService

logger = structlog.get_logger(__name__)


def _notification_sink(ctx: dict) -> INotificationSink:
    """Queue notifications through the worker's own redis pool when there is one."""
    redis = ctx.get("redis")
    if redis is None:
        return LoggingNotificationSink()
    return ArqNotificationSink(redis)


def _room_service(session, ctx: dict) -> RoomService:
    room_repo = RoomRepository(session)
    post_repo = PostRepository(session)
    return RoomService(
        db=session,
        room_repo=room_repo,
        post_repo=post_repo,
        activity_monitor=ActivityMonitor(db=session, room_repo=room_repo, post_repo=post_repo),
        notification_sink=_notification_sink(ctx),
    )


async def run_expiration_sweep(ctx: dict) -> dict:
    """
    ARQ cron task: finalize or extend every post past its expiry.

    Per-post failures are isolated by the sweeper itself. Only a failure of the
    candidate query aborts the run, and that is retried.

    Args:
        ctx: ARQ context with db_manager

    Returns:
        Sweep report as a dict
    """
    job_id = str(uuid4())
    db_session_context.set(job_id)

    db_manager: ARQDatabaseManager = ctx["db_manager"]

    try:
        async for session in db_manager.get_session():
            sweeper = ExpirationSweeper(
                db=session,
                post_repo=PostRepository(session),
                notification_sink=_notification_sink(ctx),
            )
            report = await sweeper.run_sweep()
            return report.model_dump(mode="json")

    except SQLAlchemyError as e:
        logger.error("sweep_aborted", error=str(e), job_id=job_id)
        raise Retry(defer=ctx.get("job_try", 1) * 5)


async def notify_expiring_posts(ctx: dict, days: int | None = None) -> dict:
    """
    ARQ cron task: warn authors whose posts expire soon.

    Args:
        ctx: ARQ context with db_manager
        days: Look-ahead window, defaults to EXPIRING_NOTICE_DAYS

    Returns:
        Dict with the number of notifications sent
    """
    job_id = str(uuid4())
    db_session_context.set(job_id)

    db_manager: ARQDatabaseManager = ctx["db_manager"]

    async for session in db_manager.get_session():
        sweeper = ExpirationSweeper(
            db=session,
            post_repo=PostRepository(session),
            notification_sink=_notification_sink(ctx),
        )
        sent = await sweeper.notify_expiring_posts(days=days)
        return {"notified": sent}


async def enforce_room_activity(ctx: dict) -> dict:
    """
    ARQ cron task: lock inactive rooms and unlock rooms that recovered.

    Only rooms locked by this task are unlocked again; a moderator's lock is
    left alone. Disabled unless AUTO_LOCK_INACTIVE_ROOMS is set.

    Args:
        ctx: ARQ context with db_manager

    Returns:
        Dict with locked, unlocked and failed room IDs
    """
    if not settings.auto_lock_inactive_rooms:
        return {"skipped": "Auto lock disabled"}

    job_id = str(uuid4())
    db_session_context.set(job_id)

    db_manager: ARQDatabaseManager = ctx["db_manager"]
    lock_reason = INSUFFICIENT_ACTIVITY_LOCK_REASON.format(
        min_posters=settings.activity_min_unique_posters,
        hours=settings.activity_window_hours,
    )
    result: dict[str, list[int]] = {"locked": [], "unlocked": [], "failed": []}

    async for session in db_manager.get_session():
        room_repo = RoomRepository(session)
        room_service = _room_service(session, ctx)

        active_ids = [room.id for room in await room_repo.get_rooms_by_status([RoomStatus.ACTIVE])]
        locked_ids = [
            room.id
            for room in await room_repo.get_rooms_by_status([RoomStatus.LOCKED])
            if room.lock_reason == lock_reason
        ]
        await session.commit()

        for room_id in active_ids:
            try:
                report = await room_service.check_activity(room_id)
                if not report.meets_requirement:
                    await room_service.lock_room(room_id, lock_reason)
                    result["locked"].append(room_id)
            except DomainException as e:
                result["failed"].append(room_id)
                logger.error("room_activity_enforcement_failed", room_id=room_id, error=e.message)

        for room_id in locked_ids:
            try:
                report = await room_service.check_activity(room_id)
                if report.meets_requirement:
                    await room_service.unlock_room(room_id)
                    result["unlocked"].append(room_id)
            except DomainException as e:
                result["failed"].append(room_id)
                logger.error("room_activity_enforcement_failed", room_id=room_id, error=e.message)

    logger.info(
        "room_activity_enforced",
        locked=len(result["locked"]),
        unlocked=len(result["unlocked"]),
        failed=len(result["failed"]),
    )
    return result


async def reconcile_member_counts(ctx: dict) -> dict:
    """
    ARQ cron task: repair cached member counts that drifted from the roster.

    Args:
        ctx: ARQ context with db_manager

    Returns:
        Dict with the IDs of repaired rooms
    """
    job_id = str(uuid4())
    db_session_context.set(job_id)

    db_manager: ARQDatabaseManager = ctx["db_manager"]
    repaired: list[int] = []
    checked = 0

    async for session in db_manager.get_session():
        room_service = _room_service(session, ctx)
        room_ids = await RoomRepository(session).get_live_room_ids()
        await session.commit()

        for room_id in room_ids:
            try:
                reconciliation = await room_service.reconcile_member_count(room_id)
            except DomainException as e:
                logger.error("member_count_reconciliation_failed", room_id=room_id, error=e.message)
                continue
            checked += 1
            if reconciliation.repaired:
                repaired.append(room_id)

    logger.info("member_counts_reconciled", checked=checked, repaired=len(repaired))
    return {"checked": checked, "repaired": repaired}


async def store_notification(ctx: dict, recipient: str, event_kind: str, payload: dict) -> dict:
    """
    ARQ task: persist one lifecycle notification for later delivery.

    Args:
        ctx: ARQ context with db_manager
        recipient: Pseudo the notification is addressed to
        event_kind: Notification event value
        payload: Event data

    Returns:
        Dict with notification_id
    """
    job_id = str(uuid4())
    db_session_context.set(job_id)

    db_manager: ARQDatabaseManager = ctx["db_manager"]

    try:
        async for session in db_manager.get_session():
            notification_repo = NotificationRepository(session)
            notification = await notification_repo.create(
                UserNotification(
                    user_pseudo=recipient,
                    notification_type=event_kind,
                    notification_data=payload,
                    created_at=utcnow(),
                )
            )
            await session.commit()

            logger.debug("notification_stored", notification_id=notification.id, recipient=recipient)
            return {"notification_id": notification.id}

    except SQLAlchemyError as e:
        logger.error("notification_store_failed", error=str(e), recipient=recipient, event_kind=event_kind)
        raise Retry(defer=ctx.get("job_try", 1) * 5)
