"""Routes exposing the credit ledger."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query, status

from careerzone.application.use_cases.credits import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    CreditLedger,
)
from careerzone.domain.entities import CreditTransaction
from careerzone.domain.exceptions import LedgerError
from careerzone.interfaces.api.dependencies import (
    get_credit_ledger,
    get_current_user_id,
    require_internal_caller,
)
from careerzone.interfaces.api.routes_helpers import to_http_exception
from careerzone.interfaces.api.schemas import (
    BalanceRead,
    CreditHistoryRead,
    CreditSummaryRead,
    CreditTransactionApplied,
    CreditTransactionCreate,
    CreditTransactionRead,
    HistoryPagination,
)

router = APIRouter(prefix="/credit", tags=["credit"])


def _transaction_to_read_model(transaction: CreditTransaction) -> CreditTransactionRead:
    return CreditTransactionRead.model_validate(transaction)


@router.post(
    "/transactions",
    response_model=CreditTransactionApplied,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_internal_caller)],
)
def apply_transaction(
    transaction_in: CreditTransactionCreate,
    ledger: CreditLedger = Depends(get_credit_ledger),
) -> CreditTransactionApplied:
    """Record a deposit or usage; answers 402 when the balance is too low."""

    try:
        transaction, balance = ledger.apply_transaction(
            transaction_in.actor_id,
            transaction_in.type,
            transaction_in.category,
            transaction_in.amount,
            transaction_in.description,
            reference_id=transaction_in.reference_id,
            reference_model=transaction_in.reference_model,
            metadata=transaction_in.metadata,
        )
    except LedgerError as exc:
        raise to_http_exception(exc) from exc
    return CreditTransactionApplied(
        transaction=_transaction_to_read_model(transaction), balance=balance
    )


@router.get("/balance", response_model=BalanceRead)
def read_balance(
    ledger: CreditLedger = Depends(get_credit_ledger),
    actor_id: str = Depends(get_current_user_id),
) -> BalanceRead:
    return BalanceRead(actor_id=actor_id, balance=ledger.get_balance(actor_id))


@router.get("/history", response_model=CreditHistoryRead)
def read_history(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    type: str | None = Query(None, description="DEPOSIT or USAGE"),
    category: str | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    ledger: CreditLedger = Depends(get_credit_ledger),
    actor_id: str = Depends(get_current_user_id),
) -> CreditHistoryRead:
    """Return the caller's transactions, newest first."""

    try:
        result = ledger.get_history(
            actor_id,
            page=page,
            limit=limit,
            transaction_type=type,
            category=category,
            start_date=start_date,
            end_date=end_date,
        )
    except LedgerError as exc:
        raise to_http_exception(exc) from exc
    return CreditHistoryRead(
        transactions=[_transaction_to_read_model(item) for item in result.items],
        pagination=HistoryPagination(
            current_page=result.current_page,
            total_pages=result.total_pages,
            total_records=result.total_records,
            limit=result.limit,
            has_next_page=result.has_next_page,
            has_prev_page=result.has_prev_page,
        ),
    )


@router.get("/summary", response_model=CreditSummaryRead)
def read_summary(
    start_date: date | None = None,
    end_date: date | None = None,
    ledger: CreditLedger = Depends(get_credit_ledger),
    actor_id: str = Depends(get_current_user_id),
) -> CreditSummaryRead:
    """Return balance, deposit and usage totals for the caller."""

    try:
        summary = ledger.get_summary(actor_id, start_date=start_date, end_date=end_date)
    except LedgerError as exc:
        raise to_http_exception(exc) from exc
    return CreditSummaryRead.model_validate(summary)


__all__ = ["router"]
