"""ORM models used by the application infrastructure."""

from .credit import CreditAccountModel, CreditTransactionModel
from .notification import NotificationModel

__all__ = [
    "CreditAccountModel",
    "CreditTransactionModel",
    "NotificationModel",
]
