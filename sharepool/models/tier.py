"""
BusinessTierConfig model: the table that drives tier behavior.
"""

from decimal import Decimal
from typing import Optional

from sqlalchemy import Boolean, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from sharepool.models.base import AMOUNT, Base, TimestampMixin


class BusinessTierConfig(Base, TimestampMixin):
    """
    One row per business tier.

    Read-only to the engine. Rows are seeded on first startup and
    changed only through the admin tiers endpoint.
    """

    __tablename__ = "business_tier_configs"

    id: Mapped[int] = mapped_column(primary_key=True)
    tier_name: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        nullable=False,
    )
    min_investment: Mapped[Decimal] = mapped_column(
        AMOUNT,
        default=Decimal("0"),
        nullable=False,
    )
    token_multiplier: Mapped[Decimal] = mapped_column(
        Numeric(6, 2),
        default=Decimal("1.0"),
        nullable=False,
        comment="Applied to token units granted per contribution",
    )
    maxout_multiplier: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(6, 2),
        nullable=True,
        comment="Payout ceiling as a multiple of base investment; empty when unlimited",
    )
    shares_per_unit: Mapped[Decimal] = mapped_column(
        Numeric(8, 2),
        default=Decimal("1.0"),
        nullable=False,
        comment="Shares granted per 1,000,000 currency units",
    )
    base_shares: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
        comment="Flat share grant replacing the per-unit rule (branches)",
    )
    unlimited_shares: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
    kpi_required: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<BusinessTierConfig(tier='{self.tier_name}', min={self.min_investment})>"
