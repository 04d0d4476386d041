"""Repository implementations for infrastructure layer."""

from .credit_repository import CreditRepository
from .notification_repository import NotificationRepository

__all__ = [
    "CreditRepository",
    "NotificationRepository",
]
