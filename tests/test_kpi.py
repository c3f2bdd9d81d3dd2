"""
Tests for KPI scoring, slots and KPI record storage.
"""

from decimal import Decimal

import pytest

from sharepool.models import HolderType, KpiState
from sharepool.services.errors import InvalidAmount, InvalidPeriod, NotFound
from sharepool.services.holders import create_staff_member, open_branch
from sharepool.services.kpi import (
    KpiMetrics,
    calculate_kpi,
    compute_points,
    compute_score,
    evaluate_score,
    score_metrics,
)


def _metrics(card_sales=10, retention="80", revenue="100", target="100"):
    return KpiMetrics(
        card_sales=card_sales,
        customer_retention=Decimal(retention),
        revenue=Decimal(revenue),
        target_revenue=Decimal(target),
    )


# ── pure scoring ──────────────────────────────────────────


class TestPoints:
    def test_card_sales_and_retention(self, rules):
        assert compute_points(10, Decimal("80"), rules) == Decimal("130")

    def test_rounds_half_up(self, rules):
        assert compute_points(3, Decimal("12.5"), rules) == Decimal("28")
        assert compute_points(0, Decimal("12.4"), rules) == Decimal("12")


class TestScore:
    def test_weighted_score(self, rules):
        # 0.5 x 100% + 0.3 x 80 + 0.2 x (10 x 5)
        assert compute_score(_metrics(), rules) == Decimal("84")

    def test_revenue_above_target(self, rules):
        m = _metrics(card_sales=0, retention="0", revenue="150", target="100")
        assert compute_score(m, rules) == Decimal("75")

    def test_no_target_means_no_attainment(self, rules):
        m = _metrics(card_sales=0, retention="50", revenue="1000", target="0")
        assert compute_score(m, rules) == Decimal("15")

    def test_truncated_not_rounded(self, rules):
        # 0.5 x (99.9999 / 100 x 100) = 49.99995 -> 49.9999
        m = _metrics(card_sales=0, retention="0", revenue="99.9999", target="100")
        assert compute_score(m, rules) == Decimal("49.9999")


class TestEvaluateScore:
    def test_just_below_threshold(self, rules):
        outcome = evaluate_score(Decimal("49.999"), Decimal("100"), rules)
        assert outcome.state == KpiState.INELIGIBLE
        assert not outcome.eligible
        assert outcome.slots == 0
        assert outcome.shares_awarded == Decimal("0")
        assert outcome.token_earned == Decimal("0")

    def test_exactly_threshold(self, rules):
        outcome = evaluate_score(Decimal("50"), Decimal("10"), rules)
        assert outcome.state == KpiState.ELIGIBLE
        assert outcome.slots == 1
        assert outcome.shares_awarded == Decimal("50")
        assert outcome.token_earned == Decimal("100")

    def test_multiple_slots(self, rules):
        assert evaluate_score(Decimal("149.9999"), Decimal("0"), rules).slots == 2
        assert evaluate_score(Decimal("150"), Decimal("0"), rules).slots == 3

    def test_score_metrics_rejects_negative(self, rules):
        with pytest.raises(InvalidAmount):
            score_metrics(_metrics(card_sales=-1), rules)
        with pytest.raises(InvalidAmount):
            score_metrics(_metrics(retention="-5"), rules)


# ── calculate_kpi ─────────────────────────────────────────


class TestCalculateKpi:
    @pytest.mark.asyncio
    async def test_staff_record(self, seeded_db):
        staff = await create_staff_member(seeded_db, "S-001", "Sales Lead")
        record = await calculate_kpi(seeded_db, HolderType.STAFF, "S-001", "2024-Q1", _metrics())

        assert record.holder_id == staff.id
        assert record.state == KpiState.ELIGIBLE
        assert record.is_eligible
        assert record.slots_earned == 1
        assert record.shares_awarded == Decimal("50")
        assert record.token_earned == Decimal("1300")
        assert not record.is_processed
        # Awards are credited by the quarterly run, not here
        assert staff.shares == Decimal("0")

    @pytest.mark.asyncio
    async def test_recalculation_replaces_scores(self, seeded_db):
        await create_staff_member(seeded_db, "S-002", "Cashier")
        first = await calculate_kpi(seeded_db, HolderType.STAFF, "S-002", "2024-Q1", _metrics())
        second = await calculate_kpi(
            seeded_db, HolderType.STAFF, "S-002", "2024-Q1",
            _metrics(card_sales=0, retention="0", revenue="10", target="100"),
        )
        assert second.id == first.id
        assert second.state == KpiState.INELIGIBLE
        assert second.slots_earned == 0

    @pytest.mark.asyncio
    async def test_processed_record_is_final(self, seeded_db):
        await create_staff_member(seeded_db, "S-003", "Manager")
        record = await calculate_kpi(seeded_db, HolderType.STAFF, "S-003", "2024-Q1", _metrics())
        record.is_processed = True
        record.state = KpiState.PROCESSED

        again = await calculate_kpi(
            seeded_db, HolderType.STAFF, "S-003", "2024-Q1",
            _metrics(card_sales=0, retention="0", revenue="0", target="100"),
        )
        assert again.id == record.id
        assert again.score == Decimal("84")
        assert again.state == KpiState.PROCESSED

    @pytest.mark.asyncio
    async def test_branch_score_is_stored_on_branch(self, seeded_db):
        branch, _, _ = await open_branch(seeded_db, "B-001", "Downtown", Decimal("500000000"))
        await calculate_kpi(seeded_db, HolderType.BRANCH, "B-001", "2024-Q1", _metrics())
        assert branch.kpi_score == Decimal("84")

    @pytest.mark.asyncio
    async def test_members_have_no_kpi(self, seeded_db):
        with pytest.raises(ValueError):
            await calculate_kpi(seeded_db, HolderType.ENTITY, "M-001", "2024-Q1", _metrics())

    @pytest.mark.asyncio
    async def test_unknown_holder(self, seeded_db):
        with pytest.raises(NotFound):
            await calculate_kpi(seeded_db, HolderType.STAFF, "NOPE", "2024-Q1", _metrics())

    @pytest.mark.asyncio
    async def test_bad_period(self, seeded_db):
        await create_staff_member(seeded_db, "S-004", "Clerk")
        with pytest.raises(InvalidPeriod):
            await calculate_kpi(seeded_db, HolderType.STAFF, "S-004", "2024-Q7", _metrics())
