"""Credit ledger: guarded, append-only balance movements per actor."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from datetime import date
from typing import Any

from sqlalchemy.orm import Session

from careerzone.application.use_cases.retry import run_read_with_retries
from careerzone.domain.entities import (
    CreditAccount,
    CreditSummary,
    CreditTransaction,
    TransactionPage,
)
from careerzone.domain.exceptions import (
    ConflictError,
    InsufficientBalanceError,
    ValidationError,
)
from careerzone.infrastructure.repositories import CreditRepository
from careerzone.utils import now_in_app_timezone

from .validators import (
    ensure_signed_amount,
    ensure_transaction_category,
    ensure_transaction_type,
    normalize_period,
)

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


class CreditLedger:
    """Apply and report credit transactions for actors.

    Writes for one actor are serialized through a compare-and-swap on the
    account version; a lost swap is known not to have been applied and is
    retried a bounded number of times.
    """

    def __init__(
        self,
        session: Session,
        *,
        max_attempts: int = 3,
        retry_backoff_seconds: float = 0.05,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._session = session
        self._repository = CreditRepository(session)
        self._max_attempts = max_attempts
        self._backoff = retry_backoff_seconds
        self._sleep = sleep

    def apply_transaction(
        self,
        actor_id: str,
        transaction_type: str,
        category: str,
        amount: int,
        description: str,
        *,
        reference_id: str | None = None,
        reference_model: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> tuple[CreditTransaction, int]:
        """Record a movement and return it with the actor's new balance."""

        actor_id = (actor_id or "").strip()
        if not actor_id:
            raise ValidationError("actor_id is required")
        ensure_transaction_type(transaction_type)
        ensure_transaction_category(category)
        amount = ensure_signed_amount(transaction_type, amount)
        description = (description or "").strip()
        if not description:
            raise ValidationError("description is required")

        last_conflict: ConflictError | None = None
        for attempt in range(1, self._max_attempts + 1):
            account = self._repository.get_account(actor_id, for_update=True)
            if account is None:
                account = CreditAccount(actor_id=actor_id, balance=0, version=0)

            new_balance = account.balance + amount
            if new_balance < 0:
                self._session.rollback()
                logger.warning(
                    "Insufficient credit for actor %s: balance=%s, amount=%s",
                    actor_id,
                    account.balance,
                    amount,
                )
                raise InsufficientBalanceError(
                    actor_id, balance=account.balance, required=-amount
                )

            transaction = CreditTransaction(
                id=None,
                actor_id=actor_id,
                type=transaction_type,
                category=category,
                amount=amount,
                balance_after=new_balance,
                sequence=account.version + 1,
                description=description,
                reference_id=reference_id,
                reference_model=reference_model,
                metadata=dict(metadata or {}),
                created_at=now_in_app_timezone(),
            )
            try:
                stored, updated_account = self._repository.append(account, transaction)
            except ConflictError as exc:
                last_conflict = exc
                logger.warning(
                    "Balance of actor %s changed concurrently, retrying (%s/%s)",
                    actor_id,
                    attempt,
                    self._max_attempts,
                )
                if attempt < self._max_attempts:
                    self._sleep(self._backoff * attempt)
                continue

            logger.info(
                "Credit transaction recorded: actor=%s type=%s category=%s amount=%s balance_after=%s",
                actor_id,
                transaction_type,
                category,
                amount,
                stored.balance_after,
            )
            return stored, updated_account.balance

        assert last_conflict is not None
        raise ConflictError(
            f"Could not apply transaction for {actor_id} after {self._max_attempts} attempts"
        ) from last_conflict

    def get_balance(self, actor_id: str) -> int:
        account = self._read(lambda: self._repository.get_account(actor_id))
        return account.balance if account is not None else 0

    def get_history(
        self,
        actor_id: str,
        *,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
        transaction_type: str | None = None,
        category: str | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> TransactionPage:
        """Return the actor's transactions newest first."""

        if transaction_type is not None:
            ensure_transaction_type(transaction_type)
        if category is not None:
            ensure_transaction_category(category)
        start, end = normalize_period(start_date, end_date)
        page = max(1, page)
        limit = min(max(1, limit), MAX_PAGE_SIZE)

        filters = {
            "transaction_type": transaction_type,
            "category": category,
            "start": start,
            "end": end,
        }

        def _load() -> TransactionPage:
            items = self._repository.list_transactions(
                actor_id, offset=(page - 1) * limit, limit=limit, **filters
            )
            total = self._repository.count_transactions(actor_id, **filters)
            return TransactionPage(
                items=list(items), total_records=total, current_page=page, limit=limit
            )

        return self._read(_load)

    def get_summary(
        self,
        actor_id: str,
        *,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> CreditSummary:
        """Aggregate deposits, usage and per-category totals for a period."""

        start, end = normalize_period(start_date, end_date)

        def _load() -> CreditSummary:
            account = self._repository.get_account(actor_id)
            deposits, usage, count = self._repository.totals_by_type(
                actor_id, start=start, end=end
            )
            breakdown = self._repository.breakdown_by_category(
                actor_id, start=start, end=end
            )
            return CreditSummary(
                current_balance=account.balance if account is not None else 0,
                total_deposits=deposits,
                total_usage=abs(usage),
                transaction_count=count,
                category_breakdown=breakdown,
                period_start=start,
                period_end=end,
            )

        return self._read(_load)

    def verify_history(self, actor_id: str) -> bool:
        """Replay the actor's ledger and check it against the stored balance."""

        running = 0
        expected_sequence = 1
        for transaction in self._repository.list_in_sequence(actor_id):
            running += transaction.amount
            if (
                transaction.sequence != expected_sequence
                or transaction.balance_after != running
                or running < 0
            ):
                logger.error(
                    "Ledger mismatch for actor %s at sequence %s", actor_id, transaction.sequence
                )
                return False
            expected_sequence += 1

        account = self._repository.get_account(actor_id)
        balance = account.balance if account is not None else 0
        version = account.version if account is not None else 0
        return balance == running and version == expected_sequence - 1

    def _read(self, operation):
        return run_read_with_retries(
            self._session,
            operation,
            attempts=self._max_attempts,
            backoff_seconds=self._backoff,
            sleep=self._sleep,
        )


__all__ = ["CreditLedger", "DEFAULT_PAGE_SIZE", "MAX_PAGE_SIZE"]
