"""Persistence helpers for notification entities."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Iterable

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from careerzone.domain.entities import EntityReference, Notification
from careerzone.domain.exceptions import (
    ConflictError,
    DuplicateKeyError,
    LedgerStorageError,
    NotFoundError,
)
from careerzone.infrastructure.models import NotificationModel
from careerzone.utils import (
    ensure_app_naive_datetime,
    ensure_app_timezone,
    now_in_app_timezone,
)


class NotificationRepository:
    """Provide CRUD operations for :class:`Notification` objects."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, notification_id: int) -> Notification | None:
        model = self.session.get(NotificationModel, notification_id)
        if model is None:
            return None
        return self._to_entity(model)

    def get_for_user(self, notification_id: int, *, user_id: str) -> Notification | None:
        """Return the notification only when it belongs to ``user_id``."""

        model = (
            self.session.query(NotificationModel)
            .filter(NotificationModel.id == notification_id)
            .filter(NotificationModel.user_id == user_id)
            .one_or_none()
        )
        if model is None:
            return None
        return self._to_entity(model)

    def get_by_aggregation_key(
        self,
        *,
        user_id: str,
        notification_type: str,
        aggregation_key: str,
        for_update: bool = False,
    ) -> Notification | None:
        """Return the rollup stored under ``aggregation_key``, if any.

        ``for_update`` takes a row lock on backends that support it; the
        merge that follows is still guarded by the row version in :meth:`update`.
        """

        query = (
            self.session.query(NotificationModel)
            .filter(NotificationModel.user_id == user_id)
            .filter(NotificationModel.type == notification_type)
            .filter(NotificationModel.aggregation_key == aggregation_key)
        )
        if for_update:
            query = query.with_for_update()
        model = query.one_or_none()
        if model is None:
            return None
        return self._to_entity(model)

    def list_for_user(
        self,
        user_id: str,
        *,
        offset: int = 0,
        limit: int | None = 50,
        unread_only: bool = False,
    ) -> Sequence[Notification]:
        query = self.session.query(NotificationModel)
        query = query.filter(NotificationModel.user_id == user_id)
        if unread_only:
            query = query.filter(NotificationModel.is_read.is_(False))
        query = query.order_by(
            NotificationModel.created_at.desc(), NotificationModel.id.desc()
        )
        if offset:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)
        return [self._to_entity(model) for model in query.all()]

    def list_unread_for_user(
        self, user_id: str, *, limit: int | None = 50
    ) -> Sequence[Notification]:
        return self.list_for_user(user_id, limit=limit, unread_only=True)

    def count_for_user(self, user_id: str, *, unread_only: bool = False) -> int:
        query = self.session.query(NotificationModel).filter(
            NotificationModel.user_id == user_id
        )
        if unread_only:
            query = query.filter(NotificationModel.is_read.is_(False))
        return query.count()

    def create(self, notification: Notification) -> Notification:
        """Insert ``notification``.

        Raises :class:`DuplicateKeyError` when another writer already stored a
        notification under the same aggregation key.
        """

        model = NotificationModel()
        self._apply_entity_to_model(model, notification, include_creation_fields=True)
        model.version = 1
        self.session.add(model)
        try:
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            if notification.aggregation_key is None:
                raise LedgerStorageError(
                    f"Failed to store notification for user {notification.user_id}"
                ) from exc
            raise DuplicateKeyError(
                notification.user_id, notification.type, notification.aggregation_key
            ) from exc
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise LedgerStorageError(
                f"Failed to store notification for user {notification.user_id}"
            ) from exc
        self.session.refresh(model)
        return self._to_entity(model)

    def update(self, notification: Notification) -> Notification:
        """Overwrite the stored row if it is still at ``notification.version``.

        Raises :class:`ConflictError` when another writer changed the row after
        ``notification`` was read, :class:`NotFoundError` when it is gone and
        :class:`LedgerStorageError` for any other database failure.
        """

        if notification.id is None:
            raise ValueError("Notification id is required for updates")
        values = {
            NotificationModel.title: notification.title,
            NotificationModel.message: notification.message,
            NotificationModel.entity_type: notification.entity.type if notification.entity else None,
            NotificationModel.entity_id: notification.entity.id if notification.entity else None,
            NotificationModel.is_read: notification.is_read,
            NotificationModel.read_at: ensure_app_naive_datetime(notification.read_at),
            NotificationModel.metadata_: dict(notification.metadata or {}),
            NotificationModel.updated_at: ensure_app_naive_datetime(notification.updated_at),
            NotificationModel.version: notification.version + 1,
        }
        if notification.created_at is not None:
            values[NotificationModel.created_at] = ensure_app_naive_datetime(
                notification.created_at
            )
        try:
            changed = (
                self.session.query(NotificationModel)
                .filter(
                    NotificationModel.id == notification.id,
                    NotificationModel.version == notification.version,
                )
                .update(values, synchronize_session=False)
            )
            if changed != 1:
                self.session.rollback()
                if self.get(notification.id) is None:
                    raise NotFoundError(f"Notification with id {notification.id} not found")
                raise ConflictError(f"Notification {notification.id} changed concurrently")
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise LedgerStorageError(
                f"Failed to update notification {notification.id}"
            ) from exc

        stored = self.get(notification.id)
        if stored is None:
            raise NotFoundError(f"Notification with id {notification.id} not found")
        return stored

    def mark_as_read(self, notification_ids: Iterable[int], *, user_id: str) -> int:
        """Flag the unread notifications in ``notification_ids`` as read.

        Rows already read keep their original ``read_at``. Returns the number
        of rows changed.
        """

        ids = [notification_id for notification_id in notification_ids if notification_id is not None]
        if not ids:
            return 0
        changed = (
            self.session.query(NotificationModel)
            .filter(
                NotificationModel.id.in_(ids),
                NotificationModel.user_id == user_id,
                NotificationModel.is_read.is_(False),
            )
            .update(
                {
                    NotificationModel.is_read: True,
                    NotificationModel.read_at: ensure_app_naive_datetime(
                        now_in_app_timezone()
                    ),
                },
                synchronize_session=False,
            )
        )
        self.session.commit()
        return changed

    def mark_all_as_read(self, user_id: str) -> int:
        changed = (
            self.session.query(NotificationModel)
            .filter(
                NotificationModel.user_id == user_id,
                NotificationModel.is_read.is_(False),
            )
            .update(
                {
                    NotificationModel.is_read: True,
                    NotificationModel.read_at: ensure_app_naive_datetime(
                        now_in_app_timezone()
                    ),
                },
                synchronize_session=False,
            )
        )
        self.session.commit()
        return changed

    def delete_created_before(self, cutoff: datetime) -> int:
        """Delete notifications created strictly before ``cutoff``."""

        deleted = (
            self.session.query(NotificationModel)
            .filter(NotificationModel.created_at < ensure_app_naive_datetime(cutoff))
            .delete(synchronize_session=False)
        )
        self.session.commit()
        return deleted

    @staticmethod
    def _apply_entity_to_model(
        model: NotificationModel,
        notification: Notification,
        *,
        include_creation_fields: bool,
    ) -> None:
        if include_creation_fields:
            model.created_at = (
                ensure_app_naive_datetime(notification.created_at)
                or ensure_app_naive_datetime(now_in_app_timezone())
            )
            model.aggregation_key = notification.aggregation_key
        model.user_id = notification.user_id
        model.type = notification.type
        model.title = notification.title
        model.message = notification.message
        model.entity_type = notification.entity.type if notification.entity else None
        model.entity_id = notification.entity.id if notification.entity else None
        model.is_read = notification.is_read
        model.read_at = ensure_app_naive_datetime(notification.read_at)
        model.metadata_ = dict(notification.metadata or {})
        model.updated_at = ensure_app_naive_datetime(notification.updated_at)

    @staticmethod
    def _to_entity(model: NotificationModel) -> Notification:
        entity = None
        if model.entity_type and model.entity_id:
            entity = EntityReference(type=model.entity_type, id=model.entity_id)
        return Notification(
            id=model.id,
            user_id=model.user_id,
            type=model.type,
            title=model.title,
            message=model.message,
            entity=entity,
            aggregation_key=model.aggregation_key,
            is_read=bool(model.is_read),
            read_at=ensure_app_timezone(model.read_at),
            metadata=dict(model.metadata_ or {}),
            created_at=ensure_app_timezone(model.created_at),
            updated_at=ensure_app_timezone(model.updated_at),
            version=model.version or 0,
        )


__all__ = ["NotificationRepository"]
