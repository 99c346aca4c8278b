"""Notification sink interface for room and post lifecycle events."""

import enum
from abc import ABC, abstractmethod
from typing import Any


class NotificationEvent(str, enum.Enum):
    """Lifecycle event kinds produced by the engine."""

    ROOM_ACTIVATED = "room_activated"
    ROOM_LOCKED = "room_locked"
    ROOM_UNLOCKED = "room_unlocked"
    ROOM_DELETED = "room_deleted"
    MEMBER_REMOVED = "member_removed"
    POST_EXPIRING = "post_expiring_soon"
    POST_EXPIRED = "post_expired"


class INotificationSink(ABC):
    """
    Abstract interface for lifecycle event delivery.

    Implementations must be fire-and-forget: the engine calls ``notify``
    after its transaction has committed and never waits on delivery.
    Implementations log and swallow their own delivery failures.
    """

    @abstractmethod
    async def notify(self, recipient: str, event_kind: NotificationEvent, payload: dict[str, Any]) -> None:
        """
        Hand one event to the delivery pipeline.

        Args:
            recipient: Pseudo of the user to notify
            event_kind: Lifecycle event kind
            payload: JSON-serializable event data
        """
        pass

    async def notify_many(self, recipients: list[str], event_kind: NotificationEvent, payload: dict[str, Any]) -> None:
        """Send the same event to several recipients."""
        for recipient in recipients:
            await self.notify(recipient, event_kind, payload)
