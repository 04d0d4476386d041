"""Public helpers for storing and reading user notifications."""

from .events import (
    applicants_aggregation_key,
    notify_application_status_changed,
    notify_application_submitted,
    notify_interview_scheduled_change,
    notify_job_alert,
    notify_job_recommendation,
    notify_new_applicant,
    notify_offer_response,
    notify_profile_viewed,
)
from .ledger import (
    DEFAULT_PAGE_SIZE,
    DEFAULT_RETENTION_DAYS,
    MAX_PAGE_SIZE,
    NotificationLedger,
    Notifier,
)
from .rollups import (
    DEFAULT_MERGERS,
    NotificationPayload,
    RollupMerger,
    build_applicants_message,
    merge_counter,
    merge_job_applicants,
)

__all__ = [
    "applicants_aggregation_key",
    "build_applicants_message",
    "DEFAULT_MERGERS",
    "DEFAULT_PAGE_SIZE",
    "DEFAULT_RETENTION_DAYS",
    "MAX_PAGE_SIZE",
    "merge_counter",
    "merge_job_applicants",
    "NotificationLedger",
    "NotificationPayload",
    "Notifier",
    "notify_application_status_changed",
    "notify_application_submitted",
    "notify_interview_scheduled_change",
    "notify_job_alert",
    "notify_job_recommendation",
    "notify_new_applicant",
    "notify_offer_response",
    "notify_profile_viewed",
    "RollupMerger",
]
