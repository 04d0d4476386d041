"""Errors raised by the notification and credit ledgers."""

from __future__ import annotations


class LedgerError(ValueError):
    """Base class for domain errors reported back to API callers."""


class ValidationError(LedgerError):
    """Input was rejected before anything was written."""


class NotFoundError(LedgerError):
    """The target does not exist or is not owned by the caller."""


class ConflictError(LedgerError):
    """A concurrent writer won and the operation could not be applied."""


class DuplicateKeyError(ConflictError):
    """An aggregated notification with the same key was inserted concurrently."""

    def __init__(self, user_id: str, notification_type: str, aggregation_key: str) -> None:
        super().__init__(
            f"Notification '{aggregation_key}' of type '{notification_type}' "
            f"already exists for user {user_id}"
        )
        self.user_id = user_id
        self.notification_type = notification_type
        self.aggregation_key = aggregation_key


class InsufficientBalanceError(LedgerError):
    """The actor does not hold enough credit for a usage transaction."""

    def __init__(self, actor_id: str, *, balance: int, required: int) -> None:
        super().__init__(
            f"Not enough credit: balance is {balance}, {required} required"
        )
        self.actor_id = actor_id
        self.balance = balance
        self.required = required


class LedgerStorageError(LedgerError):
    """The storage layer failed while applying a write; nothing was recorded."""


__all__ = [
    "ConflictError",
    "DuplicateKeyError",
    "InsufficientBalanceError",
    "LedgerError",
    "LedgerStorageError",
    "NotFoundError",
    "ValidationError",
]
