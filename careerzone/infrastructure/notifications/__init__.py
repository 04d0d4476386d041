"""Realtime notification helpers for the infrastructure layer."""

from .manager import NotificationConnectionManager, notification_manager
from .publisher import (
    WebSocketNotifier,
    serialize_notification,
    websocket_notifier,
)

__all__ = [
    "NotificationConnectionManager",
    "notification_manager",
    "WebSocketNotifier",
    "serialize_notification",
    "websocket_notifier",
]
