"""Persistence layer for credit accounts and ledger rows."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from sqlalchemy import case, func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Query, Session

from careerzone.domain.entities import (
    TRANSACTION_TYPE_DEPOSIT,
    TRANSACTION_TYPE_USAGE,
    CategoryBreakdown,
    CreditAccount,
    CreditTransaction,
)
from careerzone.domain.exceptions import ConflictError, LedgerStorageError
from careerzone.infrastructure.models import CreditAccountModel, CreditTransactionModel
from careerzone.utils import (
    ensure_app_naive_datetime,
    ensure_app_timezone,
    now_in_app_timezone,
)


class CreditRepository:
    """Read and append credit ledger rows for a single session."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get_account(self, actor_id: str, *, for_update: bool = False) -> CreditAccount | None:
        query = self.session.query(CreditAccountModel).filter(
            CreditAccountModel.actor_id == actor_id
        )
        if for_update:
            query = query.with_for_update()
        model = query.one_or_none()
        if model is None:
            return None
        return self._account_to_entity(model)

    def append(
        self, account: CreditAccount, transaction: CreditTransaction
    ) -> tuple[CreditTransaction, CreditAccount]:
        """Move ``account`` to ``transaction.balance_after`` and store the row.

        ``account`` is the snapshot the balance was computed from. The account
        update only applies while its version is unchanged; both writes are
        committed together or rolled back together.

        Raises :class:`ConflictError` when another writer moved the account
        first (nothing was written) and :class:`LedgerStorageError` for any
        other database failure.
        """

        now = ensure_app_naive_datetime(transaction.created_at or now_in_app_timezone())
        next_version = account.version + 1
        try:
            if account.version == 0 and account.created_at is None:
                self.session.add(
                    CreditAccountModel(
                        actor_id=account.actor_id,
                        balance=transaction.balance_after,
                        version=next_version,
                        created_at=now,
                        updated_at=now,
                    )
                )
                self.session.flush()
            else:
                changed = (
                    self.session.query(CreditAccountModel)
                    .filter(
                        CreditAccountModel.actor_id == account.actor_id,
                        CreditAccountModel.version == account.version,
                    )
                    .update(
                        {
                            CreditAccountModel.balance: transaction.balance_after,
                            CreditAccountModel.version: next_version,
                            CreditAccountModel.updated_at: now,
                        },
                        synchronize_session=False,
                    )
                )
                if changed != 1:
                    self.session.rollback()
                    raise ConflictError(
                        f"Credit account {account.actor_id} changed concurrently"
                    )

            model = CreditTransactionModel(
                actor_id=transaction.actor_id,
                type=transaction.type,
                category=transaction.category,
                amount=transaction.amount,
                balance_after=transaction.balance_after,
                sequence=next_version,
                description=transaction.description,
                reference_id=transaction.reference_id,
                reference_model=transaction.reference_model,
                metadata_=dict(transaction.metadata or {}),
                created_at=now,
            )
            self.session.add(model)
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            raise ConflictError(
                f"Credit account {account.actor_id} changed concurrently"
            ) from exc
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise LedgerStorageError(
                f"Failed to record credit transaction for {account.actor_id}"
            ) from exc

        self.session.refresh(model)
        stored_account = self.get_account(account.actor_id)
        assert stored_account is not None
        return self._transaction_to_entity(model), stored_account

    def list_transactions(
        self,
        actor_id: str,
        *,
        offset: int = 0,
        limit: int | None = 20,
        transaction_type: str | None = None,
        category: str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> Sequence[CreditTransaction]:
        query = self._filtered(
            actor_id,
            transaction_type=transaction_type,
            category=category,
            start=start,
            end=end,
        ).order_by(
            CreditTransactionModel.created_at.desc(),
            CreditTransactionModel.sequence.desc(),
        )
        if offset:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)
        return [self._transaction_to_entity(model) for model in query.all()]

    def count_transactions(
        self,
        actor_id: str,
        *,
        transaction_type: str | None = None,
        category: str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> int:
        return self._filtered(
            actor_id,
            transaction_type=transaction_type,
            category=category,
            start=start,
            end=end,
        ).count()

    def list_in_sequence(self, actor_id: str) -> Sequence[CreditTransaction]:
        """Return every row of ``actor_id`` in the order it was applied."""

        models = (
            self.session.query(CreditTransactionModel)
            .filter(CreditTransactionModel.actor_id == actor_id)
            .order_by(CreditTransactionModel.sequence.asc())
            .all()
        )
        return [self._transaction_to_entity(model) for model in models]

    def totals_by_type(
        self,
        actor_id: str,
        *,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> tuple[int, int, int]:
        """Return ``(deposits, usage, count)`` where usage keeps its sign."""

        query = self._filtered(actor_id, start=start, end=end).with_entities(
            func.coalesce(
                func.sum(
                    case(
                        (CreditTransactionModel.type == TRANSACTION_TYPE_DEPOSIT, CreditTransactionModel.amount),
                        else_=0,
                    )
                ),
                0,
            ),
            func.coalesce(
                func.sum(
                    case(
                        (CreditTransactionModel.type == TRANSACTION_TYPE_USAGE, CreditTransactionModel.amount),
                        else_=0,
                    )
                ),
                0,
            ),
            func.count(CreditTransactionModel.id),
        )
        deposits, usage, count = query.one()
        return int(deposits or 0), int(usage or 0), int(count or 0)

    def breakdown_by_category(
        self,
        actor_id: str,
        *,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[CategoryBreakdown]:
        total_amount = func.sum(CreditTransactionModel.amount)
        rows = (
            self._filtered(actor_id, start=start, end=end)
            .with_entities(
                CreditTransactionModel.category,
                func.count(CreditTransactionModel.id),
                total_amount,
            )
            .group_by(CreditTransactionModel.category)
            .order_by(total_amount.desc(), CreditTransactionModel.category.asc())
            .all()
        )
        return [
            CategoryBreakdown(category=category, count=int(count), total_amount=int(amount or 0))
            for category, count, amount in rows
        ]

    def _filtered(
        self,
        actor_id: str,
        *,
        transaction_type: str | None = None,
        category: str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> Query:
        query = self.session.query(CreditTransactionModel).filter(
            CreditTransactionModel.actor_id == actor_id
        )
        if transaction_type is not None:
            query = query.filter(CreditTransactionModel.type == transaction_type)
        if category is not None:
            query = query.filter(CreditTransactionModel.category == category)
        if start is not None:
            query = query.filter(
                CreditTransactionModel.created_at >= ensure_app_naive_datetime(start)
            )
        if end is not None:
            query = query.filter(
                CreditTransactionModel.created_at <= ensure_app_naive_datetime(end)
            )
        return query

    @staticmethod
    def _account_to_entity(model: CreditAccountModel) -> CreditAccount:
        return CreditAccount(
            actor_id=model.actor_id,
            balance=model.balance,
            version=model.version,
            created_at=ensure_app_timezone(model.created_at),
            updated_at=ensure_app_timezone(model.updated_at),
        )

    @staticmethod
    def _transaction_to_entity(model: CreditTransactionModel) -> CreditTransaction:
        return CreditTransaction(
            id=model.id,
            actor_id=model.actor_id,
            type=model.type,
            category=model.category,
            amount=model.amount,
            balance_after=model.balance_after,
            sequence=model.sequence,
            description=model.description,
            reference_id=model.reference_id,
            reference_model=model.reference_model,
            metadata=dict(model.metadata_ or {}),
            created_at=ensure_app_timezone(model.created_at),
        )


__all__ = ["CreditRepository"]
