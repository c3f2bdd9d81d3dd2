"""
Tests for quarter parsing.
"""

from datetime import date

import pytest

from sharepool.services.errors import InvalidPeriod
from sharepool.services.quarters import parse_quarter


class TestParseQuarter:
    def test_q1(self, rules):
        q = parse_quarter("2024-Q1", rules)
        assert (q.year, q.quarter) == (2024, 1)
        assert q.start_date == date(2024, 1, 1)
        assert q.end_date == date(2024, 3, 31)
        assert q.value == "2024-Q1"

    def test_q2_ends_june_30(self, rules):
        assert parse_quarter("2024-Q2", rules).end_date == date(2024, 6, 30)

    def test_q4(self, rules):
        q = parse_quarter("2025-Q4", rules)
        assert q.start_date == date(2025, 10, 1)
        assert q.end_date == date(2025, 12, 31)

    @pytest.mark.parametrize(
        "value",
        ["2024-Q5", "2024-Q0", "2024Q1", "24-Q1", "2024-q1", "", "2024-Q1 ", "2024-Q1\n", "\uff12\uff10\uff12\uff14-Q1", None, 20241],
    )
    def test_malformed(self, rules, value):
        with pytest.raises(InvalidPeriod):
            parse_quarter(value, rules)

    @pytest.mark.parametrize("value", ["2019-Q4", "2031-Q1"])
    def test_year_out_of_range(self, rules, value):
        with pytest.raises(InvalidPeriod):
            parse_quarter(value, rules)
