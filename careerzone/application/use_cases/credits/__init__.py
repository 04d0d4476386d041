"""Use cases for the credit ledger."""

from .ledger import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, CreditLedger
from .validators import (
    ensure_signed_amount,
    ensure_transaction_category,
    ensure_transaction_type,
    normalize_period,
)

__all__ = [
    "CreditLedger",
    "DEFAULT_PAGE_SIZE",
    "MAX_PAGE_SIZE",
    "ensure_signed_amount",
    "ensure_transaction_category",
    "ensure_transaction_type",
    "normalize_period",
]
