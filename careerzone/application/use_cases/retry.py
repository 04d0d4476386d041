"""Bounded retries for idempotent reads."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import TypeVar

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

T = TypeVar("T")


def run_read_with_retries(
    session: Session,
    operation: Callable[[], T],
    *,
    attempts: int,
    backoff_seconds: float,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Run ``operation`` retrying transient database errors.

    Only use this for reads: a write that failed halfway may or may not have
    been applied.
    """

    for attempt in range(1, attempts + 1):
        try:
            return operation()
        except OperationalError:
            session.rollback()
            if attempt == attempts:
                raise
            logger.warning("Transient database error on read, attempt %s/%s", attempt, attempts)
            sleep(backoff_seconds * attempt)
    raise AssertionError("unreachable")  # pragma: no cover


__all__ = ["run_read_with_retries"]
