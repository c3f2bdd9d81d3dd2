"""
KpiPeriodRecord model: one scored quarter for a staff member or branch.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import Boolean, DateTime, Integer, Numeric, String, UniqueConstraint
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column

from sharepool.models.base import AMOUNT, Base, TimestampMixin
from sharepool.models.holder import HolderType


class KpiState(str, Enum):
    """Lifecycle of a KPI record within its quarter."""
    UNCOMPUTED = "uncomputed"
    SCORED = "scored"
    INELIGIBLE = "ineligible"
    ELIGIBLE = "eligible"
    PROCESSED = "processed"


class KpiPeriodRecord(Base, TimestampMixin):
    """
    Raw quarterly metrics and their derived outcome.

    is_processed flips exactly once, inside the quarterly distribution
    transaction, and is the only guard against crediting a quarter twice.
    """

    __tablename__ = "kpi_period_records"
    __table_args__ = (
        UniqueConstraint("holder_type", "holder_id", "period_value", name="uq_kpi_holder_period"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    holder_type: Mapped[HolderType] = mapped_column(
        SQLAlchemyEnum(
            HolderType,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
    )
    holder_id: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        index=True,
    )
    period_value: Mapped[str] = mapped_column(
        String(7),
        nullable=False,
        index=True,
    )

    # Raw metrics
    card_sales: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
    )
    customer_retention: Mapped[Decimal] = mapped_column(
        Numeric(7, 2),
        default=Decimal("0"),
        nullable=False,
        comment="Retention rate, percent",
    )
    revenue: Mapped[Decimal] = mapped_column(
        AMOUNT,
        default=Decimal("0"),
        nullable=False,
    )
    target_revenue: Mapped[Decimal] = mapped_column(
        AMOUNT,
        default=Decimal("0"),
        nullable=False,
    )

    # Derived
    total_points: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        default=Decimal("0"),
        nullable=False,
    )
    score: Mapped[Decimal] = mapped_column(
        Numeric(10, 4),
        default=Decimal("0"),
        nullable=False,
    )
    state: Mapped[KpiState] = mapped_column(
        SQLAlchemyEnum(
            KpiState,
            values_callable=lambda x: [e.value for e in x],
        ),
        default=KpiState.UNCOMPUTED,
        nullable=False,
    )
    is_eligible: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
    slots_earned: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
    )
    shares_awarded: Mapped[Decimal] = mapped_column(
        AMOUNT,
        default=Decimal("0"),
        nullable=False,
    )
    token_earned: Mapped[Decimal] = mapped_column(
        AMOUNT,
        default=Decimal("0"),
        nullable=False,
    )
    is_processed: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
    processed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    def __repr__(self) -> str:
        return (
            f"<KpiPeriodRecord({self.holder_type}:{self.holder_id}, {self.period_value}, "
            f"score={self.score}, state={self.state})>"
        )
