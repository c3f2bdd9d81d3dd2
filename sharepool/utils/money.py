"""
Presentation helpers for money amounts.

Stored balances keep six decimal places. Rounding to whole currency
units happens only here.
"""

from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal
from typing import Optional

STORAGE_PLACES = Decimal("0.000001")


def truncate_amount(value: Decimal) -> Decimal:
    """Cut an amount to storage precision without rounding up."""
    return Decimal(value).quantize(STORAGE_PLACES, rounding=ROUND_DOWN)


def format_currency(value: Optional[Decimal]) -> str:
    """Format an amount as whole currency units with thousands separators."""
    if value is None:
        return "0"
    whole = Decimal(value).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return f"{whole:,}"
