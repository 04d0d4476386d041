"""Pydantic models describing notification payloads."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class EntityRead(BaseModel):
    """Reference to the document a notification is about."""

    type: str = Field(..., min_length=1, max_length=60)
    id: str = Field(..., min_length=1, max_length=64)

    model_config = ConfigDict(from_attributes=True)


class NotificationCreate(BaseModel):
    """Event sent by another service to notify a user."""

    user_id: str = Field(..., min_length=1, max_length=64)
    type: str = Field(..., description="Notification type, e.g. job_applicants_rollup")
    title: str = Field(default="", max_length=200)
    message: str = Field(default="")
    entity: EntityRead | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    aggregation_key: str | None = Field(
        default=None,
        max_length=200,
        description="Events sharing a key are merged into a single notification",
    )


class NotificationRead(BaseModel):
    """Representation of a notification delivered to the client."""

    id: int
    user_id: str
    type: str
    title: str
    message: str
    entity: EntityRead | None = None
    aggregation_key: str | None = None
    is_read: bool
    read_at: datetime | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class PageMeta(BaseModel):
    current_page: int
    total_pages: int
    total_items: int
    limit: int


class NotificationPageRead(BaseModel):
    data: list[NotificationRead]
    meta: PageMeta


class UnreadCountRead(BaseModel):
    count: int


class MarkAllReadRead(BaseModel):
    modified_count: int


__all__ = [
    "EntityRead",
    "MarkAllReadRead",
    "NotificationCreate",
    "NotificationPageRead",
    "NotificationRead",
    "PageMeta",
    "UnreadCountRead",
]
