"""
Maxout Guard: caps the total value a holder can receive.

ceiling = base_investment x maxout multiplier, unlimited for tiers
without a multiplier. Holders with no base investment (staff, members
who only earned effort shares) have nothing to cap against.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from sharepool.services.tiers import TierConfig

ZERO = Decimal("0")


@dataclass(frozen=True)
class MaxoutResult:
    allowed: Decimal
    maxout_reached: bool
    remaining: Optional[Decimal]


def ceiling_for(base_investment: Decimal, tier: TierConfig) -> Optional[Decimal]:
    """Payout ceiling for a holder, None when uncapped."""
    base = Decimal(base_investment or 0)
    if not tier.has_ceiling or base <= ZERO:
        return None
    return base * tier.maxout_multiplier


def clamp(
    ceiling: Optional[Decimal],
    cumulative_distributed: Decimal,
    proposed: Decimal,
) -> MaxoutResult:
    """
    Clamp a proposed payout to the headroom under the ceiling.

    maxout_reached is set only when something was cut off.
    """
    proposed = max(ZERO, Decimal(proposed))
    if ceiling is None:
        return MaxoutResult(allowed=proposed, maxout_reached=False, remaining=None)

    remaining = max(ZERO, ceiling - Decimal(cumulative_distributed or 0))
    allowed = min(proposed, remaining)
    return MaxoutResult(
        allowed=allowed,
        maxout_reached=allowed < proposed,
        remaining=remaining - allowed,
    )
