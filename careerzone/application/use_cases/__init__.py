"""Aggregate application use cases."""

from .credits import CreditLedger
from .notifications import NotificationLedger

__all__ = [
    "CreditLedger",
    "NotificationLedger",
]
