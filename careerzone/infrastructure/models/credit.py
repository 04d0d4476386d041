"""SQLAlchemy models for credit accounts and their transactions."""

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Column,
    DateTime,
    Index,
    Integer,
    String,
    UniqueConstraint,
)

from careerzone.infrastructure.database import Base
from careerzone.utils import now_in_app_naive_datetime


class CreditAccountModel(Base):
    """Denormalised balance for an actor; ``version`` counts applied rows."""

    __tablename__ = "credit_account"
    __table_args__ = (
        CheckConstraint("balance >= 0", name="ck_credit_account_balance_non_negative"),
    )

    actor_id = Column(String(64), primary_key=True)
    balance = Column(Integer, nullable=False, default=0)
    version = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(), nullable=False, default=now_in_app_naive_datetime)
    updated_at = Column(DateTime(), nullable=True)


class CreditTransactionModel(Base):
    """Append-only ledger row."""

    __tablename__ = "credit_transaction"
    __table_args__ = (
        UniqueConstraint("actor_id", "sequence", name="uq_credit_transaction_actor_sequence"),
        CheckConstraint(
            "balance_after >= 0", name="ck_credit_transaction_balance_non_negative"
        ),
        Index("ix_credit_transaction_actor_created", "actor_id", "created_at"),
    )

    id = Column(Integer, primary_key=True, index=True)
    actor_id = Column(String(64), nullable=False, index=True)
    type = Column(String(20), nullable=False)
    category = Column(String(40), nullable=False)
    amount = Column(Integer, nullable=False)
    balance_after = Column(Integer, nullable=False)
    sequence = Column(Integer, nullable=False)
    description = Column(String(255), nullable=False)
    reference_id = Column(String(64), nullable=True)
    reference_model = Column(String(60), nullable=True)
    metadata_ = Column("metadata", JSON, nullable=False, default=dict)
    created_at = Column(DateTime(), nullable=False, default=now_in_app_naive_datetime)


__all__ = ["CreditAccountModel", "CreditTransactionModel"]
