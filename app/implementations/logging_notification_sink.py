from typing import Any

import structlog

from app.interfaces.notification_sink import INotificationSink, NotificationEvent

logger = structlog.get_logger(__name__)


class LoggingNotificationSink(INotificationSink):
    """Sink used when no worker queue is configured: events are only logged."""

    async def notify(self, recipient: str, event_kind: NotificationEvent, payload: dict[str, Any]) -> None:
        logger.info("notification", recipient=recipient, event_kind=event_kind.value, **payload)
