"""Domain entities for the credit ledger."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

TRANSACTION_TYPE_DEPOSIT = "DEPOSIT"
TRANSACTION_TYPE_USAGE = "USAGE"

TRANSACTION_TYPES = frozenset({TRANSACTION_TYPE_DEPOSIT, TRANSACTION_TYPE_USAGE})

TRANSACTION_CATEGORY_RECHARGE = "RECHARGE"
TRANSACTION_CATEGORY_JOB_VIEW = "JOB_VIEW"
TRANSACTION_CATEGORY_CV_UNLOCK = "CV_UNLOCK"
TRANSACTION_CATEGORY_PROFILE_BOOST = "PROFILE_BOOST"
TRANSACTION_CATEGORY_JOB_POST = "JOB_POST"
TRANSACTION_CATEGORY_PREMIUM_FEATURE = "PREMIUM_FEATURE"

TRANSACTION_CATEGORIES = frozenset(
    {
        TRANSACTION_CATEGORY_RECHARGE,
        TRANSACTION_CATEGORY_JOB_VIEW,
        TRANSACTION_CATEGORY_CV_UNLOCK,
        TRANSACTION_CATEGORY_PROFILE_BOOST,
        TRANSACTION_CATEGORY_JOB_POST,
        TRANSACTION_CATEGORY_PREMIUM_FEATURE,
    }
)


@dataclass
class CreditAccount:
    """Denormalised balance of an actor, kept in sync with its transactions."""

    actor_id: str
    balance: int
    version: int
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class CreditTransaction:
    """Single append-only movement of credit for an actor."""

    id: int | None
    actor_id: str
    type: str
    category: str
    amount: int
    balance_after: int
    sequence: int
    description: str
    reference_id: str | None = None
    reference_model: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: datetime | None = None


@dataclass(frozen=True)
class TransactionPage:
    """A page of transactions plus pagination totals."""

    items: list[CreditTransaction]
    total_records: int
    current_page: int
    limit: int

    @property
    def total_pages(self) -> int:
        if self.total_records == 0:
            return 0
        return -(-self.total_records // self.limit)

    @property
    def has_next_page(self) -> bool:
        return self.current_page < self.total_pages

    @property
    def has_prev_page(self) -> bool:
        return self.current_page > 1


@dataclass(frozen=True)
class CategoryBreakdown:
    category: str
    count: int
    total_amount: int


@dataclass(frozen=True)
class CreditSummary:
    """Aggregated view of an actor's credit movements."""

    current_balance: int
    total_deposits: int
    total_usage: int
    transaction_count: int
    category_breakdown: list[CategoryBreakdown]
    period_start: datetime | None = None
    period_end: datetime | None = None


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
]
