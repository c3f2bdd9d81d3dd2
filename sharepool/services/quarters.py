"""
Quarter wire format: YYYY-Qn.
"""

import re
from calendar import monthrange
from dataclasses import dataclass
from datetime import date
from typing import Optional

from sharepool.services.errors import InvalidPeriod
from sharepool.services.rules import BusinessRules, resolve_rules

QUARTER_PATTERN = r"^\d{4}-Q[1-4]$"
_QUARTER_RE = re.compile(r"\d{4}-Q[1-4]", re.ASCII)


@dataclass(frozen=True)
class Quarter:
    """A parsed calendar quarter with its inclusive date bounds."""

    year: int
    quarter: int
    start_date: date
    end_date: date

    @property
    def value(self) -> str:
        return f"{self.year}-Q{self.quarter}"


def parse_quarter(value: str, rules: Optional[BusinessRules] = None) -> Quarter:
    """
    Validate a quarter string and compute its first and last day.

    Raises:
        InvalidPeriod: malformed string or year outside the allowed range
    """
    rules = resolve_rules(rules)
    if not isinstance(value, str) or not _QUARTER_RE.fullmatch(value):
        raise InvalidPeriod(f"Invalid quarter format: {value!r}, expected YYYY-Qn")

    year = int(value[:4])
    quarter = int(value[-1])
    if not rules.min_quarter_year <= year <= rules.max_quarter_year:
        raise InvalidPeriod(
            f"Quarter year {year} outside "
            f"[{rules.min_quarter_year}, {rules.max_quarter_year}]"
        )

    first_month = (quarter - 1) * 3 + 1
    last_month = first_month + 2
    return Quarter(
        year=year,
        quarter=quarter,
        start_date=date(year, first_month, 1),
        end_date=date(year, last_month, monthrange(year, last_month)[1]),
    )
