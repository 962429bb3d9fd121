from __future__ import annotations

from sqlalchemy import JSON, BigInteger, Index, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all database models."""


class PlanRejectionMetricRecord(Base):
    """Persisted plan rejection metric.

    Stores:
    - reason: Rejection reason code (e.g., "excesso_exercicios_nivel")
    - timestamp: Epoch milliseconds when the plan was rejected
    - context: JSON object with scalar context (activityLevel, dayType, ...)
    """

    __tablename__ = "plan_rejection_metrics"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    reason: Mapped[str] = mapped_column(String, nullable=False)
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)
    context: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)

    __table_args__ = (
        Index("idx_plan_rejection_metrics_timestamp", "timestamp"),
        Index("idx_plan_rejection_metrics_reason", "reason"),
    )
