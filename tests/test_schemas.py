"""
Tests for request schema validation.
"""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from sharepool.schemas.contribution import ContributionCreate, WithdrawalCreate
from sharepool.schemas.distribution import QuarterProcessRequest
from sharepool.schemas.kpi import KpiSubmit


class TestQuarterProcessRequest:
    def test_defaults(self):
        req = QuarterProcessRequest(period_value="2024-Q1")
        assert req.period == "quarter"
        assert req.force_reprocess is False

    @pytest.mark.parametrize("value", ["2024-Q5", "2024Q1", "Q1-2024", "2024-01"])
    def test_bad_quarter(self, value):
        with pytest.raises(ValidationError):
            QuarterProcessRequest(period_value=value)

    def test_only_quarter_period(self):
        with pytest.raises(ValidationError):
            QuarterProcessRequest(period="month", period_value="2024-Q1")


class TestContributionCreate:
    def test_valid(self):
        req = ContributionCreate(entity_code="M-001", amount="2500000", kind="card")
        assert req.amount == Decimal("2500000")
        assert req.event_type is None

    def test_engine_event_type_refused(self):
        with pytest.raises(ValidationError):
            ContributionCreate(entity_code="M-001", amount="1", kind="cash", event_type="kpi_bonus")

    def test_negative_amount(self):
        with pytest.raises(ValidationError):
            ContributionCreate(entity_code="M-001", amount="-1", kind="cash")

    def test_withdrawal_needs_positive_amount(self):
        with pytest.raises(ValidationError):
            WithdrawalCreate(entity_code="M-001", amount="0")


class TestKpiSubmit:
    def test_members_cannot_submit_kpi(self):
        with pytest.raises(ValidationError):
            KpiSubmit(
                holder_type="entity", holder_code="M-001", period_value="2024-Q1",
                card_sales=1, customer_retention="1", revenue="1", target_revenue="1",
            )

    def test_negative_card_sales(self):
        with pytest.raises(ValidationError):
            KpiSubmit(
                holder_type="staff", holder_code="S-001", period_value="2024-Q1",
                card_sales=-1, customer_retention="1", revenue="1", target_revenue="1",
            )
