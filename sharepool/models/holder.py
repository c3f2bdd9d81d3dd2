"""
Shareholding holders: members (entities), staff members and branches.

Holders own their balances exclusively. Balances change only through
the contribution calculator and the quarterly distribution processor.
"""

from decimal import Decimal
from enum import Enum
from typing import List, Optional

from sqlalchemy import Boolean, ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from sharepool.models.base import AMOUNT, Base, TimestampMixin


class HolderType(str, Enum):
    """Kind of record holding shares."""
    ENTITY = "entity"
    STAFF = "staff"
    BRANCH = "branch"


class DistributionBalanceMixin:
    """Columns the Maxout Guard reads and writes."""

    token_balance: Mapped[Decimal] = mapped_column(
        AMOUNT,
        default=Decimal("0"),
        nullable=False,
    )
    base_investment: Mapped[Decimal] = mapped_column(
        AMOUNT,
        default=Decimal("0"),
        nullable=False,
        comment="Investment the maxout ceiling is computed from",
    )
    cumulative_distributed: Mapped[Decimal] = mapped_column(
        AMOUNT,
        default=Decimal("0"),
        nullable=False,
        comment="Total value paid out or granted so far",
    )
    maxout_reached: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )


class Entity(Base, TimestampMixin, DistributionBalanceMixin):
    """
    Member, investor or card customer.

    Created on first contribution, never deleted, only deactivated.
    """

    __tablename__ = "entities"

    id: Mapped[int] = mapped_column(primary_key=True)
    code: Mapped[str] = mapped_column(
        String(64),
        unique=True,
        index=True,
        nullable=False,
        comment="External member identifier",
    )
    name: Mapped[Optional[str]] = mapped_column(
        String(200),
        nullable=True,
    )
    tier: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        index=True,
    )
    cumulative_amount: Mapped[Decimal] = mapped_column(
        AMOUNT,
        default=Decimal("0"),
        nullable=False,
        comment="Capital contributed so far; drives tier classification",
    )
    capital_shares: Mapped[Decimal] = mapped_column(
        AMOUNT,
        default=Decimal("0"),
        nullable=False,
    )
    labor_shares: Mapped[Decimal] = mapped_column(
        AMOUNT,
        default=Decimal("0"),
        nullable=False,
    )
    withdrawable_balance: Mapped[Decimal] = mapped_column(
        AMOUNT,
        default=Decimal("0"),
        nullable=False,
        comment="Paid distributions not yet withdrawn",
    )

    @property
    def total_shares(self) -> Decimal:
        return (self.capital_shares or Decimal("0")) + (self.labor_shares or Decimal("0"))

    def __repr__(self) -> str:
        return f"<Entity(id={self.id}, code='{self.code}', tier='{self.tier}')>"


class Branch(Base, TimestampMixin, DistributionBalanceMixin):
    """
    Franchise branch.

    Holds a fixed labor share grant and receives distributions only in
    quarters where its KPI record is eligible.
    """

    __tablename__ = "branches"

    id: Mapped[int] = mapped_column(primary_key=True)
    code: Mapped[str] = mapped_column(
        String(64),
        unique=True,
        index=True,
        nullable=False,
    )
    name: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
    )
    tier: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )
    shares: Mapped[Decimal] = mapped_column(
        AMOUNT,
        default=Decimal("0"),
        nullable=False,
    )
    kpi_score: Mapped[Decimal] = mapped_column(
        Numeric(10, 4),
        default=Decimal("0"),
        nullable=False,
        comment="Score of the most recently calculated quarter",
    )

    staff: Mapped[List["StaffMember"]] = relationship(
        "StaffMember",
        back_populates="branch",
    )

    def __repr__(self) -> str:
        return f"<Branch(id={self.id}, code='{self.code}')>"


class StaffMember(Base, TimestampMixin, DistributionBalanceMixin):
    """
    Staff member earning labor shares through KPI slots.

    Staff have no base investment, so their payouts are never capped.
    """

    __tablename__ = "staff_members"

    id: Mapped[int] = mapped_column(primary_key=True)
    code: Mapped[str] = mapped_column(
        String(64),
        unique=True,
        index=True,
        nullable=False,
    )
    name: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
    )
    position: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
    )
    branch_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("branches.id"),
        nullable=True,
        index=True,
    )
    shares: Mapped[Decimal] = mapped_column(
        AMOUNT,
        default=Decimal("0"),
        nullable=False,
    )
    equity_percentage: Mapped[Decimal] = mapped_column(
        Numeric(9, 4),
        default=Decimal("0"),
        nullable=False,
        comment="Share of all outstanding shares at the last quarter close",
    )

    branch: Mapped[Optional["Branch"]] = relationship(
        "Branch",
        back_populates="staff",
    )

    def __repr__(self) -> str:
        return f"<StaffMember(id={self.id}, code='{self.code}')>"
