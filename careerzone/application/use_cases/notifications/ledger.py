"""Notification ledger: rollups, read state and retention."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Protocol

from sqlalchemy.orm import Session

from careerzone.application.use_cases.retry import run_read_with_retries
from careerzone.domain.entities import NOTIFICATION_TYPES, Notification, NotificationPage
from careerzone.domain.exceptions import (
    ConflictError,
    DuplicateKeyError,
    NotFoundError,
    ValidationError,
)
from careerzone.infrastructure.repositories import NotificationRepository
from careerzone.utils import now_in_app_timezone

from .rollups import NotificationPayload, RollupMerger, resolve_merger

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 50
DEFAULT_RETENTION_DAYS = 30


class Notifier(Protocol):
    """Delivers a stored notification to the owner's live clients."""

    def dispatch(self, notification: Notification, *, created: bool = True) -> None:
        ...


class NotificationLedger:
    """Create, merge, read and expire notifications for users."""

    def __init__(
        self,
        session: Session,
        *,
        notifier: Notifier | None = None,
        mergers: Mapping[str, RollupMerger] | None = None,
        max_attempts: int = 3,
        retention_days: int = DEFAULT_RETENTION_DAYS,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._session = session
        self._repository = NotificationRepository(session)
        self._notifier = notifier
        self._mergers = mergers
        self._max_attempts = max_attempts
        self._retention = timedelta(days=retention_days)

    def record_event(
        self,
        user_id: str,
        notification_type: str,
        payload: NotificationPayload,
        aggregation_key: str | None = None,
    ) -> tuple[Notification, bool]:
        """Store an event for ``user_id``.

        With an ``aggregation_key`` the event is merged into the existing
        rollup for ``(user_id, notification_type, aggregation_key)`` when there
        is one. Returns the stored notification and whether it was created.
        """

        user_id = (user_id or "").strip()
        if not user_id:
            raise ValidationError("user_id is required")
        if notification_type not in NOTIFICATION_TYPES:
            raise ValidationError(f"Unknown notification type: {notification_type}")
        aggregation_key = (aggregation_key or "").strip() or None

        if aggregation_key is None:
            saved = self._repository.create(
                self._build(user_id, notification_type, payload, None)
            )
            self._dispatch(saved, created=True)
            return saved, True

        merger = resolve_merger(notification_type, self._mergers)
        last_error: ConflictError | None = None
        for attempt in range(1, self._max_attempts + 1):
            existing = self._repository.get_by_aggregation_key(
                user_id=user_id,
                notification_type=notification_type,
                aggregation_key=aggregation_key,
                for_update=True,
            )
            if existing is not None:
                try:
                    saved = self._repository.update(
                        self._merge_into(existing, merger(existing, payload))
                    )
                except ConflictError as exc:
                    last_error = exc
                    logger.warning(
                        "Rollup %s of user %s changed concurrently, retrying (%s/%s)",
                        aggregation_key,
                        user_id,
                        attempt,
                        self._max_attempts,
                    )
                    continue
                logger.info(
                    "Merged event into notification %s (%s) for user %s",
                    saved.id,
                    aggregation_key,
                    user_id,
                )
                self._dispatch(saved, created=False)
                return saved, False

            candidate = self._build(
                user_id, notification_type, merger(None, payload), aggregation_key
            )
            try:
                saved = self._repository.create(candidate)
            except DuplicateKeyError as exc:
                last_error = exc
                logger.warning(
                    "Lost insert race for %s of user %s, retrying as update (%s/%s)",
                    aggregation_key,
                    user_id,
                    attempt,
                    self._max_attempts,
                )
                continue
            self._dispatch(saved, created=True)
            return saved, True

        assert last_error is not None
        raise last_error

    def mark_read(self, notification_id: int, user_id: str) -> Notification:
        """Mark one notification as read; repeated calls leave it unchanged."""

        notification = self._repository.get_for_user(notification_id, user_id=user_id)
        if notification is None:
            raise NotFoundError("Notification not found")
        if notification.is_read:
            return notification
        self._repository.mark_as_read([notification_id], user_id=user_id)
        refreshed = self._repository.get(notification_id)
        assert refreshed is not None
        return refreshed

    def mark_many_read(self, notification_ids: list[int], user_id: str) -> int:
        return self._repository.mark_as_read(notification_ids, user_id=user_id)

    def mark_all_read(self, user_id: str) -> int:
        return self._repository.mark_all_as_read(user_id)

    def list_for_user(
        self,
        user_id: str,
        *,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
        unread_only: bool = False,
    ) -> NotificationPage:
        page = max(1, page)
        limit = min(max(1, limit), MAX_PAGE_SIZE)

        def _read() -> NotificationPage:
            items = self._repository.list_for_user(
                user_id,
                offset=(page - 1) * limit,
                limit=limit,
                unread_only=unread_only,
            )
            total = self._repository.count_for_user(user_id, unread_only=unread_only)
            return NotificationPage(
                items=list(items), total_items=total, current_page=page, limit=limit
            )

        return run_read_with_retries(
            self._session, _read, attempts=self._max_attempts, backoff_seconds=0.05
        )

    def list_unread(self, user_id: str, *, limit: int = MAX_PAGE_SIZE) -> list[Notification]:
        return list(self._repository.list_unread_for_user(user_id, limit=limit))

    def get_unread_count(self, user_id: str) -> int:
        return run_read_with_retries(
            self._session,
            lambda: self._repository.count_for_user(user_id, unread_only=True),
            attempts=self._max_attempts,
            backoff_seconds=0.05,
        )

    def purge_expired(self, now: datetime | None = None) -> int:
        """Delete notifications older than the retention window."""

        cutoff = (now or now_in_app_timezone()) - self._retention
        deleted = self._repository.delete_created_before(cutoff)
        if deleted:
            logger.info("Purged %s notifications created before %s", deleted, cutoff.isoformat())
        return deleted

    def _build(
        self,
        user_id: str,
        notification_type: str,
        payload: NotificationPayload,
        aggregation_key: str | None,
    ) -> Notification:
        self._validate_content(payload)
        return Notification(
            id=None,
            user_id=user_id,
            type=notification_type,
            title=payload.title.strip(),
            message=payload.message.strip(),
            entity=payload.entity,
            aggregation_key=aggregation_key,
            metadata=dict(payload.metadata),
            created_at=now_in_app_timezone(),
        )

    def _merge_into(self, existing: Notification, merged: NotificationPayload) -> Notification:
        self._validate_content(merged)
        now = now_in_app_timezone()
        # The rollup resurfaces: unread again and back on top of the list.
        return replace(
            existing,
            title=merged.title.strip(),
            message=merged.message.strip(),
            entity=merged.entity or existing.entity,
            metadata=dict(merged.metadata),
            is_read=False,
            read_at=None,
            created_at=now,
            updated_at=now,
        )

    @staticmethod
    def _validate_content(payload: NotificationPayload) -> None:
        if not (payload.title or "").strip():
            raise ValidationError("title is required")
        if not (payload.message or "").strip():
            raise ValidationError("message is required")

    def _dispatch(self, notification: Notification, *, created: bool) -> None:
        if self._notifier is None:
            return
        try:
            self._notifier.dispatch(notification, created=created)
        except Exception:
            # Row is already committed.
            logger.exception("Failed to push notification %s", notification.id)


__all__ = [
    "DEFAULT_PAGE_SIZE",
    "DEFAULT_RETENTION_DAYS",
    "MAX_PAGE_SIZE",
    "NotificationLedger",
    "Notifier",
]
