"""
ContributionEvent model: immutable record of money moving into or out of a holder.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Integer, String
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column

from sharepool.models.base import AMOUNT, Base, TimestampMixin
from sharepool.models.holder import HolderType


class ContributionType(str, Enum):
    """What the event represents."""
    DEPOSIT = "deposit"
    INVESTMENT = "investment"
    CARD_PURCHASE = "card_purchase"
    ASSET_CONTRIBUTION = "asset_contribution"
    WITHDRAWAL = "withdrawal"
    KPI_BONUS = "kpi_bonus"
    REFERRAL_COMMISSION = "referral_commission"
    SHARE_DISTRIBUTION = "share_distribution"
    FRANCHISE_FEE = "franchise_fee"


class ContributionKind(str, Enum):
    """How the value was contributed."""
    CASH = "cash"
    ASSET = "asset"
    EFFORT = "effort"
    CARD = "card"


class ApprovalStatus(str, Enum):
    """Approval workflow state."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    COMPLETED = "completed"


# Kinds whose shares are capital shares and whose amount counts toward tier
CAPITAL_KINDS = frozenset({ContributionKind.CASH, ContributionKind.ASSET, ContributionKind.CARD})


class ContributionEvent(Base, TimestampMixin):
    """
    Append-only fact describing one contribution, bonus or withdrawal.

    token_amount is always derived by the unit converter, never entered.
    The applied deltas are stored so a rejection can reverse them exactly.
    Only status, approved_by_id and approved_at change after creation.
    """

    __tablename__ = "contribution_events"

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
    event_type: Mapped[ContributionType] = mapped_column(
        SQLAlchemyEnum(
            ContributionType,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
        index=True,
    )
    kind: Mapped[Optional[ContributionKind]] = mapped_column(
        SQLAlchemyEnum(
            ContributionKind,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=True,
    )
    amount: Mapped[Decimal] = mapped_column(
        AMOUNT,
        nullable=False,
    )
    token_amount: Mapped[Decimal] = mapped_column(
        AMOUNT,
        default=Decimal("0"),
        nullable=False,
    )
    shares_granted: Mapped[Decimal] = mapped_column(
        AMOUNT,
        default=Decimal("0"),
        nullable=False,
    )
    distributed_value: Mapped[Decimal] = mapped_column(
        AMOUNT,
        default=Decimal("0"),
        nullable=False,
        comment="Value counted against the maxout ceiling",
    )
    tax_amount: Mapped[Decimal] = mapped_column(
        AMOUNT,
        default=Decimal("0"),
        nullable=False,
    )
    tier_before: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
    )
    tier_after: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
    )
    maxout_reached: Mapped[bool] = mapped_column(
        default=False,
        nullable=False,
    )
    status: Mapped[ApprovalStatus] = mapped_column(
        SQLAlchemyEnum(
            ApprovalStatus,
            values_callable=lambda x: [e.value for e in x],
        ),
        default=ApprovalStatus.PENDING,
        nullable=False,
        index=True,
    )
    period_value: Mapped[Optional[str]] = mapped_column(
        String(7),
        nullable=True,
        comment="Quarter the event belongs to (KPI bonuses)",
    )
    description: Mapped[Optional[str]] = mapped_column(
        String(500),
        nullable=True,
    )
    approved_by_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id"),
        nullable=True,
    )
    approved_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    def __repr__(self) -> str:
        return (
            f"<ContributionEvent(id={self.id}, {self.holder_type}:{self.holder_id}, "
            f"type={self.event_type}, amount={self.amount}, status={self.status})>"
        )
