"""
Service interfaces for dependency injection.

This module defines abstract interfaces for external collaborators,
enabling clean dependency injection and easy testing.
"""

from .notification_sink import INotificationSink, NotificationEvent

__all__ = [
    "INotificationSink",
    "NotificationEvent",
]
