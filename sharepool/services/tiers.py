"""
Tier table and classifier.

Tier behavior is data: one TierConfig per tier, loaded from the
business_tier_configs table. Classification is a pure function over
that list, evaluated from the highest minimum investment down.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from sharepool.models.tier import BusinessTierConfig
from sharepool.services.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_TIER = "staff"
BRANCH_TIER = "branch"


@dataclass(frozen=True)
class TierConfig:
    """Behavior of one tier."""

    name: str
    min_investment: Decimal
    multiplier: Decimal
    maxout_multiplier: Optional[Decimal]
    shares_per_unit: Decimal = Decimal("1")
    base_shares: int = 0
    unlimited: bool = False
    kpi_required: bool = False

    @property
    def has_ceiling(self) -> bool:
        return not self.unlimited and self.maxout_multiplier is not None

    @classmethod
    def from_row(cls, row: BusinessTierConfig) -> "TierConfig":
        return cls(
            name=row.tier_name,
            min_investment=Decimal(row.min_investment),
            multiplier=Decimal(row.token_multiplier),
            maxout_multiplier=(
                Decimal(row.maxout_multiplier) if row.maxout_multiplier is not None else None
            ),
            shares_per_unit=Decimal(row.shares_per_unit),
            base_shares=row.base_shares,
            unlimited=row.unlimited_shares,
            kpi_required=row.kpi_required,
        )


DEFAULT_TIERS: List[TierConfig] = [
    TierConfig("founder", Decimal("245000000"), Decimal("3.0"), None, unlimited=True),
    TierConfig("angel", Decimal("100000000"), Decimal("2.5"), Decimal("5.0")),
    TierConfig("card_customer", Decimal("1"), Decimal("1.0"), Decimal("2.1")),
    TierConfig(BRANCH_TIER, Decimal("0"), Decimal("1.0"), Decimal("1.5"), base_shares=200, kpi_required=True),
    TierConfig(DEFAULT_TIER, Decimal("0"), Decimal("1.0"), Decimal("1.0")),
]


def get_tier(tiers: Iterable[TierConfig], name: str) -> TierConfig:
    """Look up a tier by name."""
    for tier in tiers:
        if tier.name == name:
            return tier
    raise ConfigurationError(f"Tier '{name}' is not configured")


def classify(cumulative_amount: Decimal, tiers: Sequence[TierConfig]) -> TierConfig:
    """
    Tier for a cumulative contribution amount.

    Tiers flagged kpi_required are assigned explicitly and never returned
    here. When several thresholds are met the highest one wins.

    Raises:
        ConfigurationError: table is empty or has no default tier
    """
    if not tiers:
        raise ConfigurationError("Tier table is empty")

    amount = Decimal(cumulative_amount)
    candidates = sorted(
        (t for t in tiers if not t.kpi_required and t.name != DEFAULT_TIER),
        key=lambda t: t.min_investment,
        reverse=True,
    )
    for tier in candidates:
        if amount >= tier.min_investment:
            return tier

    return get_tier(tiers, DEFAULT_TIER)


async def load_tier_table(db: AsyncSession) -> List[TierConfig]:
    """
    Read the active tier rows.

    Raises:
        ConfigurationError: no active tier rows
    """
    result = await db.execute(
        select(BusinessTierConfig)
        .where(BusinessTierConfig.is_active == True)
        .order_by(BusinessTierConfig.min_investment.desc())
    )
    rows = result.scalars().all()
    if not rows:
        raise ConfigurationError("No active tier configuration found")
    return [TierConfig.from_row(row) for row in rows]


async def seed_default_tiers(db: AsyncSession) -> int:
    """Insert the default tier table if it is empty. Returns rows created."""
    count = await db.scalar(select(func.count(BusinessTierConfig.id)))
    if count:
        return 0

    for tier in DEFAULT_TIERS:
        db.add(BusinessTierConfig(
            tier_name=tier.name,
            min_investment=tier.min_investment,
            token_multiplier=tier.multiplier,
            maxout_multiplier=tier.maxout_multiplier,
            shares_per_unit=tier.shares_per_unit,
            base_shares=tier.base_shares,
            unlimited_shares=tier.unlimited,
            kpi_required=tier.kpi_required,
            is_active=True,
        ))
    await db.flush()
    logger.info(f"Seeded {len(DEFAULT_TIERS)} default tiers")
    return len(DEFAULT_TIERS)
