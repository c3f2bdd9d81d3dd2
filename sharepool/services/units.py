"""
Currency <-> token unit conversion.

Both directions are linear scalings of the same unit, so
to_currency(to_token_units(x)) == x exactly for Decimal inputs.
"""

from decimal import Decimal
from typing import Optional

from sharepool.services.rules import BusinessRules, resolve_rules

MILLION = Decimal("1000000")


def to_token_units(amount: Decimal, rules: Optional[BusinessRules] = None) -> Decimal:
    """Token units for a currency amount (100 per 1,000,000 by default)."""
    rules = resolve_rules(rules)
    return Decimal(amount) * rules.tokens_per_million / MILLION


def to_currency(tokens: Decimal, rules: Optional[BusinessRules] = None) -> Decimal:
    """Currency value of a token quantity (10,000 per token by default)."""
    rules = resolve_rules(rules)
    return Decimal(tokens) * rules.currency_per_token
