"""
Referral model for member-to-member introductions.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Numeric, String
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column

from sharepool.models.base import AMOUNT, Base, TimestampMixin


class ReferralStatus(str, Enum):
    """Commission lifecycle."""
    PENDING = "pending"        # Code issued, referred member has not contributed
    COMPLETED = "completed"    # Commission earned, not fully paid
    PAID = "paid"              # Commission fully paid
    CANCELLED = "cancelled"


class Referral(Base, TimestampMixin):
    """
    A referral code owned by a member.

    The commission is earned once, on the first approved capital
    contribution of the referred member.
    """

    __tablename__ = "referrals"

    id: Mapped[int] = mapped_column(primary_key=True)
    referrer_id: Mapped[int] = mapped_column(
        ForeignKey("entities.id"),
        nullable=False,
        index=True,
    )
    referred_entity_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("entities.id"),
        nullable=True,
        unique=True,
    )
    referral_code: Mapped[str] = mapped_column(
        String(64),
        unique=True,
        index=True,
        nullable=False,
    )
    first_contribution_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("contribution_events.id"),
        nullable=True,
    )
    contribution_value: Mapped[Decimal] = mapped_column(
        AMOUNT,
        default=Decimal("0"),
        nullable=False,
    )
    commission_rate: Mapped[Decimal] = mapped_column(
        Numeric(5, 4),
        nullable=False,
    )
    commission_amount: Mapped[Decimal] = mapped_column(
        AMOUNT,
        default=Decimal("0"),
        nullable=False,
    )
    commission_paid: Mapped[Decimal] = mapped_column(
        AMOUNT,
        default=Decimal("0"),
        nullable=False,
    )
    status: Mapped[ReferralStatus] = mapped_column(
        SQLAlchemyEnum(
            ReferralStatus,
            values_callable=lambda x: [e.value for e in x],
        ),
        default=ReferralStatus.PENDING,
        nullable=False,
    )
    paid_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<Referral(id={self.id}, code='{self.referral_code}', status={self.status})>"
