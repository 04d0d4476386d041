"""Domain entities exposed by the application."""

from .credit import (
    TRANSACTION_CATEGORIES,
    TRANSACTION_CATEGORY_CV_UNLOCK,
    TRANSACTION_CATEGORY_JOB_POST,
    TRANSACTION_CATEGORY_JOB_VIEW,
    TRANSACTION_CATEGORY_PREMIUM_FEATURE,
    TRANSACTION_CATEGORY_PROFILE_BOOST,
    TRANSACTION_CATEGORY_RECHARGE,
    TRANSACTION_TYPES,
    TRANSACTION_TYPE_DEPOSIT,
    TRANSACTION_TYPE_USAGE,
    CategoryBreakdown,
    CreditAccount,
    CreditSummary,
    CreditTransaction,
    TransactionPage,
)
from .notification import (
    NOTIFICATION_TYPES,
    NOTIFICATION_TYPE_APPLICATION,
    NOTIFICATION_TYPE_INTERVIEW,
    NOTIFICATION_TYPE_JOB_ALERT,
    NOTIFICATION_TYPE_JOB_APPLICANTS_ROLLUP,
    NOTIFICATION_TYPE_PROFILE_VIEW,
    NOTIFICATION_TYPE_RECOMMENDATION,
    NOTIFICATION_TYPE_SYSTEM,
    EntityReference,
    Notification,
    NotificationPage,
)

__all__ = [
    "CategoryBreakdown",
    "CreditAccount",
    "CreditSummary",
    "CreditTransaction",
    "TransactionPage",
    "TRANSACTION_CATEGORIES",
    "TRANSACTION_CATEGORY_CV_UNLOCK",
    "TRANSACTION_CATEGORY_JOB_POST",
    "TRANSACTION_CATEGORY_JOB_VIEW",
    "TRANSACTION_CATEGORY_PREMIUM_FEATURE",
    "TRANSACTION_CATEGORY_PROFILE_BOOST",
    "TRANSACTION_CATEGORY_RECHARGE",
    "TRANSACTION_TYPES",
    "TRANSACTION_TYPE_DEPOSIT",
    "TRANSACTION_TYPE_USAGE",
    "EntityReference",
    "Notification",
    "NotificationPage",
    "NOTIFICATION_TYPES",
    "NOTIFICATION_TYPE_APPLICATION",
    "NOTIFICATION_TYPE_INTERVIEW",
    "NOTIFICATION_TYPE_JOB_ALERT",
    "NOTIFICATION_TYPE_JOB_APPLICANTS_ROLLUP",
    "NOTIFICATION_TYPE_PROFILE_VIEW",
    "NOTIFICATION_TYPE_RECOMMENDATION",
    "NOTIFICATION_TYPE_SYSTEM",
]
