"""
Quarterly profit sharing models.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, text
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from sharepool.models.base import AMOUNT, Base, TimestampMixin
from sharepool.models.holder import HolderType


class PeriodStatus(str, Enum):
    """Status of a quarterly profit sharing run."""
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class DistributionType(str, Enum):
    """Which sub-pool a distribution is paid from."""
    CAPITAL = "capital"
    LABOR = "labor"


class PaymentStatus(str, Enum):
    """Payment state of a single distribution."""
    PENDING = "pending"
    PAID = "paid"
    CANCELLED = "cancelled"


class ProfitSharingPeriod(Base, TimestampMixin):
    """
    One processing run for a quarter.

    The partial unique index allows any number of cancelled runs but only
    one live run per quarter, so two racing admin triggers cannot both
    commit. The loser gets an IntegrityError, surfaced as AlreadyProcessed.
    """

    __tablename__ = "profit_sharing_periods"
    __table_args__ = (
        Index(
            "uq_profit_sharing_live_period",
            "period",
            "period_value",
            unique=True,
            postgresql_where=text("status <> 'cancelled'"),
            sqlite_where=text("status <> 'cancelled'"),
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    period: Mapped[str] = mapped_column(
        String(20),
        default="quarter",
        nullable=False,
    )
    period_value: Mapped[str] = mapped_column(
        String(7),
        nullable=False,
        index=True,
    )
    total_revenue: Mapped[Decimal] = mapped_column(AMOUNT, default=Decimal("0"), nullable=False)
    total_expenses: Mapped[Decimal] = mapped_column(AMOUNT, default=Decimal("0"), nullable=False)
    net_profit: Mapped[Decimal] = mapped_column(AMOUNT, default=Decimal("0"), nullable=False)
    distribution_pool: Mapped[Decimal] = mapped_column(
        AMOUNT,
        default=Decimal("0"),
        nullable=False,
        comment="Profit pool rate x net profit, zero when there is no profit",
    )
    capital_pool: Mapped[Decimal] = mapped_column(AMOUNT, default=Decimal("0"), nullable=False)
    labor_pool: Mapped[Decimal] = mapped_column(AMOUNT, default=Decimal("0"), nullable=False)
    total_shares: Mapped[Decimal] = mapped_column(AMOUNT, default=Decimal("0"), nullable=False)
    capital_shares: Mapped[Decimal] = mapped_column(AMOUNT, default=Decimal("0"), nullable=False)
    labor_shares: Mapped[Decimal] = mapped_column(AMOUNT, default=Decimal("0"), nullable=False)
    profit_per_share: Mapped[Decimal] = mapped_column(AMOUNT, default=Decimal("0"), nullable=False)
    capital_profit_per_share: Mapped[Decimal] = mapped_column(AMOUNT, default=Decimal("0"), nullable=False)
    labor_profit_per_share: Mapped[Decimal] = mapped_column(AMOUNT, default=Decimal("0"), nullable=False)
    total_distributed: Mapped[Decimal] = mapped_column(AMOUNT, default=Decimal("0"), nullable=False)
    undistributed_amount: Mapped[Decimal] = mapped_column(
        AMOUNT,
        default=Decimal("0"),
        nullable=False,
        comment="Pool left unpaid by maxout clamping, empty sub-pools and truncation",
    )
    status: Mapped[PeriodStatus] = mapped_column(
        SQLAlchemyEnum(
            PeriodStatus,
            values_callable=lambda x: [e.value for e in x],
        ),
        default=PeriodStatus.PENDING,
        nullable=False,
    )
    processed_by_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id"),
        nullable=True,
    )
    processed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    cancelled_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    distributions: Mapped[List["ProfitDistributionRecord"]] = relationship(
        "ProfitDistributionRecord",
        back_populates="period_record",
        order_by="ProfitDistributionRecord.id",
    )

    def __repr__(self) -> str:
        return (
            f"<ProfitSharingPeriod(id={self.id}, {self.period_value}, "
            f"pool={self.distribution_pool}, status={self.status})>"
        )


class ProfitDistributionRecord(Base, TimestampMixin):
    """
    Payout owed to one holder from one sub-pool of one run.

    Read-only after creation apart from the payment status transition.
    """

    __tablename__ = "profit_distribution_records"

    id: Mapped[int] = mapped_column(primary_key=True)
    profit_sharing_id: Mapped[int] = mapped_column(
        ForeignKey("profit_sharing_periods.id"),
        nullable=False,
        index=True,
    )
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
    holder_name: Mapped[Optional[str]] = mapped_column(
        String(200),
        nullable=True,
    )
    distribution_type: Mapped[DistributionType] = mapped_column(
        SQLAlchemyEnum(
            DistributionType,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
    )
    shares_owned: Mapped[Decimal] = mapped_column(AMOUNT, nullable=False)
    raw_amount: Mapped[Decimal] = mapped_column(
        AMOUNT,
        nullable=False,
        comment="Amount before the maxout clamp",
    )
    distribution_amount: Mapped[Decimal] = mapped_column(AMOUNT, nullable=False)
    token_amount: Mapped[Decimal] = mapped_column(AMOUNT, nullable=False)
    maxout_applied: Mapped[bool] = mapped_column(default=False, nullable=False)
    payment_status: Mapped[PaymentStatus] = mapped_column(
        SQLAlchemyEnum(
            PaymentStatus,
            values_callable=lambda x: [e.value for e in x],
        ),
        default=PaymentStatus.PENDING,
        nullable=False,
    )
    paid_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    period_record: Mapped["ProfitSharingPeriod"] = relationship(
        "ProfitSharingPeriod",
        back_populates="distributions",
    )

    def __repr__(self) -> str:
        return (
            f"<ProfitDistributionRecord(id={self.id}, {self.holder_type}:{self.holder_id}, "
            f"{self.distribution_type}, amount={self.distribution_amount})>"
        )
