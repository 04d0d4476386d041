"""Validation helpers for credit ledger input."""

from __future__ import annotations

from datetime import date, datetime

from careerzone.domain.entities import (
    TRANSACTION_CATEGORIES,
    TRANSACTION_TYPES,
    TRANSACTION_TYPE_DEPOSIT,
    TRANSACTION_TYPE_USAGE,
)
from careerzone.domain.exceptions import ValidationError
from careerzone.utils import end_of_day, ensure_app_timezone, start_of_day


def ensure_transaction_type(value: str) -> str:
    if value not in TRANSACTION_TYPES:
        raise ValidationError(f"Invalid transaction type: {value}")
    return value


def ensure_transaction_category(value: str) -> str:
    if value not in TRANSACTION_CATEGORIES:
        raise ValidationError(f"Invalid transaction category: {value}")
    return value


def ensure_signed_amount(transaction_type: str, amount: object) -> int:
    """Return ``amount`` when its sign matches ``transaction_type``."""

    if isinstance(amount, bool) or not isinstance(amount, int):
        raise ValidationError("Amount must be an integer")
    if transaction_type == TRANSACTION_TYPE_DEPOSIT and amount <= 0:
        raise ValidationError("Deposit amount must be positive")
    if transaction_type == TRANSACTION_TYPE_USAGE and amount >= 0:
        raise ValidationError("Usage amount must be negative")
    return amount


def normalize_period(
    start: date | None, end: date | None
) -> tuple[datetime | None, datetime | None]:
    """Turn an optional date range into aware datetimes.

    Plain dates cover whole days: the start at midnight, the end up to the
    last microsecond of that day.
    """

    start_at = _as_datetime(start, end_of_range=False)
    end_at = _as_datetime(end, end_of_range=True)
    if start_at is not None and end_at is not None and start_at > end_at:
        raise ValidationError("Start date cannot be after end date")
    return start_at, end_at


def _as_datetime(value: date | None, *, end_of_range: bool) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return ensure_app_timezone(value)
    return end_of_day(value) if end_of_range else start_of_day(value)


__all__ = [
    "ensure_signed_amount",
    "ensure_transaction_category",
    "ensure_transaction_type",
    "normalize_period",
]
