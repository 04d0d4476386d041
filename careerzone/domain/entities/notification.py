"""Domain entity representing a user notification."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

NOTIFICATION_TYPE_APPLICATION = "application"
NOTIFICATION_TYPE_INTERVIEW = "interview"
NOTIFICATION_TYPE_RECOMMENDATION = "recommendation"
NOTIFICATION_TYPE_PROFILE_VIEW = "profile_view"
NOTIFICATION_TYPE_JOB_ALERT = "job_alert"
NOTIFICATION_TYPE_SYSTEM = "system"
NOTIFICATION_TYPE_JOB_APPLICANTS_ROLLUP = "job_applicants_rollup"

NOTIFICATION_TYPES = frozenset(
    {
        NOTIFICATION_TYPE_APPLICATION,
        NOTIFICATION_TYPE_INTERVIEW,
        NOTIFICATION_TYPE_RECOMMENDATION,
        NOTIFICATION_TYPE_PROFILE_VIEW,
        NOTIFICATION_TYPE_JOB_ALERT,
        NOTIFICATION_TYPE_SYSTEM,
        NOTIFICATION_TYPE_JOB_APPLICANTS_ROLLUP,
    }
)


@dataclass(frozen=True)
class EntityReference:
    """Polymorphic pointer to the document a notification talks about."""

    type: str
    id: str


@dataclass
class Notification:
    """Information message delivered to a specific user."""

    id: int | None
    user_id: str
    type: str
    title: str
    message: str
    entity: EntityReference | None = None
    aggregation_key: str | None = None
    is_read: bool = False
    read_at: datetime | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: datetime | None = None
    updated_at: datetime | None = None
    version: int = 0


@dataclass(frozen=True)
class NotificationPage:
    """One page of notifications with the totals needed for pagination."""

    items: list[Notification]
    total_items: int
    current_page: int
    limit: int

    @property
    def total_pages(self) -> int:
        if self.total_items == 0:
            return 0
        return -(-self.total_items // self.limit)


__all__ = [
    "EntityReference",
    "Notification",
    "NotificationPage",
    "NOTIFICATION_TYPES",
    "NOTIFICATION_TYPE_APPLICATION",
    "NOTIFICATION_TYPE_INTERVIEW",
    "NOTIFICATION_TYPE_RECOMMENDATION",
    "NOTIFICATION_TYPE_PROFILE_VIEW",
    "NOTIFICATION_TYPE_JOB_ALERT",
    "NOTIFICATION_TYPE_SYSTEM",
    "NOTIFICATION_TYPE_JOB_APPLICANTS_ROLLUP",
]
