"""Push stored notifications to websocket subscribers."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from anyio import from_thread

from careerzone.domain.entities import Notification

from .manager import NotificationConnectionManager, notification_manager

logger = logging.getLogger(__name__)


class WebSocketNotifier:
    """Notifier that delivers notifications to the owner's open websockets.

    Ledger calls happen both inside the event loop (websocket handlers) and in
    the threadpool that runs sync endpoints, so delivery is scheduled on
    whichever side is available.
    """

    def __init__(self, manager: NotificationConnectionManager) -> None:
        self._manager = manager

    def dispatch(self, notification: Notification, *, created: bool = True) -> None:
        """Schedule ``notification`` to be delivered to its user."""

        if not self._manager.is_connected(notification.user_id):
            return

        message = {
            "type": "notification.created" if created else "notification.updated",
            "data": serialize_notification(notification),
        }
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            try:
                from_thread.run(self._manager.send_to_user, notification.user_id, message)
            except RuntimeError:
                # Called from a plain thread with no portal (scripts, tests).
                logger.debug(
                    "No event loop available to push notification %s", notification.id
                )
        else:
            loop.create_task(self._manager.send_to_user(notification.user_id, message))


def serialize_notification(notification: Notification) -> dict[str, Any]:
    """Return the JSON payload representation for ``notification``."""

    return {
        "id": notification.id,
        "user_id": notification.user_id,
        "type": notification.type,
        "title": notification.title,
        "message": notification.message,
        "entity": (
            {"type": notification.entity.type, "id": notification.entity.id}
            if notification.entity
            else None
        ),
        "aggregation_key": notification.aggregation_key,
        "is_read": notification.is_read,
        "read_at": notification.read_at.isoformat() if notification.read_at else None,
        "metadata": notification.metadata or {},
        "created_at": notification.created_at.isoformat()
        if notification.created_at
        else None,
        "updated_at": notification.updated_at.isoformat()
        if notification.updated_at
        else None,
    }


websocket_notifier = WebSocketNotifier(notification_manager)


__all__ = [
    "WebSocketNotifier",
    "serialize_notification",
    "websocket_notifier",
]
