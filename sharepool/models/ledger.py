"""
Ledger model for quarterly revenue and expense tracking.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, ForeignKey, String, func
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from sharepool.models.base import AMOUNT, Base, TimestampMixin

if TYPE_CHECKING:
    from sharepool.models.holder import Branch
    from sharepool.models.user import User


class LedgerEntryType(str, Enum):
    """Direction of a ledger entry."""
    INCOME = "income"
    EXPENSE = "expense"


class LedgerEntry(Base, TimestampMixin):
    """
    Business income or expense.

    The quarterly processor sums these between the quarter's first and
    last calendar day to obtain revenue, expenses and net profit.
    """

    __tablename__ = "ledger"

    id: Mapped[int] = mapped_column(primary_key=True)
    entry_type: Mapped[LedgerEntryType] = mapped_column(
        SQLAlchemyEnum(
            LedgerEntryType,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
        index=True,
    )
    amount: Mapped[Decimal] = mapped_column(
        AMOUNT,
        nullable=False,
    )
    description: Mapped[str] = mapped_column(
        String(500),
        nullable=False,
    )
    branch_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("branches.id"),
        nullable=True,
        index=True,
    )
    occurred_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        index=True,
    )
    recorded_by_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id"),
        nullable=True,
    )

    # Relationships
    branch: Mapped[Optional["Branch"]] = relationship("Branch")
    recorded_by: Mapped[Optional["User"]] = relationship("User")

    def __repr__(self) -> str:
        return f"<LedgerEntry(id={self.id}, type={self.entry_type}, amount={self.amount})>"
