from .credit import (
    BalanceRead,
    CategoryBreakdownRead,
    CreditHistoryRead,
    CreditSummaryRead,
    CreditTransactionApplied,
    CreditTransactionCreate,
    CreditTransactionRead,
    HistoryPagination,
)
from .notification import (
    EntityRead,
    MarkAllReadRead,
    NotificationCreate,
    NotificationPageRead,
    NotificationRead,
    PageMeta,
    UnreadCountRead,
)

__all__ = [
    "BalanceRead",
    "CategoryBreakdownRead",
    "CreditHistoryRead",
    "CreditSummaryRead",
    "CreditTransactionApplied",
    "CreditTransactionCreate",
    "CreditTransactionRead",
    "HistoryPagination",
    "EntityRead",
    "MarkAllReadRead",
    "NotificationCreate",
    "NotificationPageRead",
    "NotificationRead",
    "PageMeta",
    "UnreadCountRead",
]
