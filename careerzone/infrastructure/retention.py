"""Background sweep deleting notifications past their retention window."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from datetime import datetime

import anyio
from sqlalchemy.orm import Session, sessionmaker

from careerzone.application.use_cases.notifications.ledger import NotificationLedger

logger = logging.getLogger(__name__)


class NotificationRetentionSweeper:
    """Periodically remove notifications older than ``retention_days``."""

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        *,
        retention_days: int,
        interval_seconds: float,
    ) -> None:
        self._session_factory = session_factory
        self._retention_days = retention_days
        self._interval = interval_seconds
        self._task: asyncio.Task[None] | None = None

    def sweep_once(self, now: datetime | None = None) -> int:
        """Delete expired notifications and return how many were removed."""

        with self._session_factory() as session:
            ledger = NotificationLedger(session, retention_days=self._retention_days)
            deleted = ledger.purge_expired(now)
        if deleted:
            logger.info("Retention sweep removed %s notifications", deleted)
        return deleted

    async def run_forever(self) -> None:
        while True:
            try:
                await anyio.to_thread.run_sync(self.sweep_once)
            except Exception:
                logger.exception("Notification retention sweep failed")
            await asyncio.sleep(self._interval)

    def start(self) -> None:
        if self._interval <= 0 or self._task is not None:
            return
        self._task = asyncio.get_running_loop().create_task(self.run_forever())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None


__all__ = ["NotificationRetentionSweeper"]
