"""ARQ Worker Settings and Configuration."""

import structlog
from arq import cron
from arq.connections import RedisSettings

from app.core.arq_db_manager import ARQDatabaseManager
from app.core.config import settings
from app.core.logging_config import configure_logging
from app.workers.tasks import (
    enforce_room_activity,
    notify_expiring_posts,
    reconcile_member_counts,
    run_expiration_sweep,
    store_notification,
)

logger = structlog.get_logger(__name__)


async def startup(ctx: dict) -> None:
    """Initialize resources on worker startup."""
    configure_logging()
    db_manager = ARQDatabaseManager()
    await db_manager.connect()
    ctx["db_manager"] = db_manager
    logger.info("arq_worker_started", redis_url=settings.redis_url)


async def shutdown(ctx: dict) -> None:
    """Clean up resources on worker shutdown."""
    db_manager: ARQDatabaseManager = ctx.get("db_manager")
    if db_manager:
        await db_manager.disconnect()
    logger.info("arq_worker_stopped")


class WorkerSettings:
    """ARQ worker configuration."""

    functions = [
        run_expiration_sweep,
        notify_expiring_posts,
        enforce_room_activity,
        reconcile_member_counts,
        store_notification,
    ]

    cron_jobs = [
        # Hourly expiry sweep; arq never overlaps two runs of the same cron job.
        cron(run_expiration_sweep, minute=settings.sweep_cron_minute, unique=True),
        cron(notify_expiring_posts, hour=9, minute=0, unique=True),
        cron(enforce_room_activity, hour=6, minute=30, unique=True),
        cron(reconcile_member_counts, hour=3, minute=15, unique=True),
    ]

    redis_settings = RedisSettings.from_dsn(settings.redis_url)

    on_startup = startup
    on_shutdown = shutdown

    max_jobs = 10
    job_timeout = 300
    keep_result = 3600

    max_tries = 3
    retry_jobs = True
