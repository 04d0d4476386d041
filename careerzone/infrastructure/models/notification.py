"""SQLAlchemy model for persisted notifications."""

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Index,
    Integer,
    String,
    Text,
    text,
)
from sqlalchemy.sql import expression

from careerzone.infrastructure.database import Base
from careerzone.utils import now_in_app_naive_datetime


class NotificationModel(Base):
    """Database representation for user notifications."""

    __tablename__ = "notification"
    __table_args__ = (
        # At most one aggregated notification per (user, type, key); rows
        # without a key are not constrained.
        Index(
            "ux_notification_user_type_aggregation",
            "user_id",
            "type",
            "aggregation_key",
            unique=True,
            sqlite_where=text("aggregation_key IS NOT NULL"),
            postgresql_where=text("aggregation_key IS NOT NULL"),
        ),
        Index("ix_notification_user_created", "user_id", "created_at"),
        Index("ix_notification_user_is_read", "user_id", "is_read"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), nullable=False, index=True)
    type = Column(String(40), nullable=False)
    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    entity_type = Column(String(60), nullable=True)
    entity_id = Column(String(64), nullable=True)
    aggregation_key = Column(String(200), nullable=True)
    is_read = Column(
        Boolean,
        nullable=False,
        default=False,
        server_default=expression.false(),
    )
    read_at = Column(DateTime(), nullable=True)
    metadata_ = Column("metadata", JSON, nullable=False, default=dict)
    created_at = Column(
        DateTime(), nullable=False, default=now_in_app_naive_datetime, index=True
    )
    updated_at = Column(DateTime(), nullable=True)
    version = Column(Integer, nullable=False, default=1, server_default=text("1"))


__all__ = ["NotificationModel"]
