"""
Immutable business constants for the equity engine.

Built once from Settings and passed into the calculators. Tests build
their own instance to exercise non-default rules.
"""

from decimal import Decimal
from functools import lru_cache
from typing import Optional

from pydantic import BaseModel, ConfigDict

from sharepool.config import get_settings


class BusinessRules(BaseModel):
    """Every constant the calculators depend on."""

    model_config = ConfigDict(frozen=True)

    # Unit conversion
    tokens_per_million: Decimal = Decimal("100")
    currency_per_token: Decimal = Decimal("10000")

    # Profit pool
    profit_pool_rate: Decimal = Decimal("0.49")
    capital_pool_rate: Decimal = Decimal("0.30")
    labor_pool_rate: Decimal = Decimal("0.19")
    min_quarter_year: int = 2020
    max_quarter_year: int = 2030

    # Withdrawals
    withdrawal_tax_rate: Decimal = Decimal("0.10")
    withdrawal_tax_threshold: Decimal = Decimal("10000000")
    min_withdrawal: Decimal = Decimal("5000000")

    # KPI
    kpi_eligibility_score: Decimal = Decimal("50")
    shares_per_slot: int = 50
    tokens_per_kpi_point: Decimal = Decimal("10")
    points_per_card_sale: Decimal = Decimal("5")
    kpi_weight_revenue: Decimal = Decimal("0.5")
    kpi_weight_retention: Decimal = Decimal("0.3")
    kpi_weight_card_sales: Decimal = Decimal("0.2")

    # Referrals and branches
    referral_commission_rate: Decimal = Decimal("0.08")
    branch_initial_tokens: Decimal = Decimal("20000")


@lru_cache
def get_business_rules() -> BusinessRules:
    """Build the rules from application settings (cached)."""
    settings = get_settings()
    return BusinessRules(
        **{name: getattr(settings, name) for name in BusinessRules.model_fields}
    )


def resolve_rules(rules: Optional[BusinessRules]) -> BusinessRules:
    """Return the given rules or the application defaults."""
    return rules if rules is not None else get_business_rules()
