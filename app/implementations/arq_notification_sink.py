"""Notification sink that hands events to the arq worker queue."""

from typing import Any

import structlog
from arq.connections import ArqRedis
from redis.exceptions import RedisError

from app.interfaces.notification_sink import INotificationSink, NotificationEvent

logger = structlog.get_logger(__name__)


class ArqNotificationSink(INotificationSink):
    """
    Enqueue a ``store_notification`` job per event.

    Enqueue failures are logged and dropped; lifecycle operations never
    fail because a notification could not be queued.
    """

    def __init__(self, redis: ArqRedis):
        self.redis = redis

    async def notify(self, recipient: str, event_kind: NotificationEvent, payload: dict[str, Any]) -> None:
        try:
            await self.redis.enqueue_job("store_notification", recipient, event_kind.value, payload)
        except (RedisError, OSError) as e:
            logger.warning(
                "notification_enqueue_failed",
                recipient=recipient,
                event_kind=event_kind.value,
                error=str(e),
            )
            return

        logger.debug("notification_enqueued", recipient=recipient, event_kind=event_kind.value)
