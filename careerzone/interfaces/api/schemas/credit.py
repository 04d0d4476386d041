"""Schemas for credit ledger endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class CreditTransactionCreate(BaseModel):
    """Balance movement requested by another service."""

    actor_id: str = Field(..., min_length=1, max_length=64)
    type: str = Field(..., description="DEPOSIT or USAGE")
    category: str = Field(..., description="RECHARGE, JOB_VIEW, CV_UNLOCK, ...")
    amount: int = Field(
        ..., description="Positive for deposits, negative for usage"
    )
    description: str = Field(..., min_length=1, max_length=255)
    reference_id: str | None = Field(default=None, max_length=64)
    reference_model: str | None = Field(default=None, max_length=60)
    metadata: dict[str, Any] = Field(default_factory=dict)


class CreditTransactionRead(BaseModel):
    id: int
    actor_id: str
    type: str
    category: str
    amount: int
    balance_after: int
    sequence: int
    description: str
    reference_id: str | None = None
    reference_model: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CreditTransactionApplied(BaseModel):
    transaction: CreditTransactionRead
    balance: int


class BalanceRead(BaseModel):
    actor_id: str
    balance: int


class HistoryPagination(BaseModel):
    current_page: int
    total_pages: int
    total_records: int
    limit: int
    has_next_page: bool
    has_prev_page: bool


class CreditHistoryRead(BaseModel):
    transactions: list[CreditTransactionRead]
    pagination: HistoryPagination


class CategoryBreakdownRead(BaseModel):
    category: str
    count: int
    total_amount: int

    model_config = ConfigDict(from_attributes=True)


class CreditSummaryRead(BaseModel):
    current_balance: int
    total_deposits: int
    total_usage: int
    transaction_count: int
    category_breakdown: list[CategoryBreakdownRead]
    period_start: datetime | None = None
    period_end: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


__all__ = [
    "BalanceRead",
    "CategoryBreakdownRead",
    "CreditHistoryRead",
    "CreditSummaryRead",
    "CreditTransactionApplied",
    "CreditTransactionCreate",
    "CreditTransactionRead",
    "HistoryPagination",
]
