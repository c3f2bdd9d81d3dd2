"""
Tests for tier classification and the tier table.
"""

from decimal import Decimal

import pytest

from sharepool.services.errors import ConfigurationError
from sharepool.services.tiers import (
    BRANCH_TIER,
    DEFAULT_TIER,
    TierConfig,
    classify,
    get_tier,
    load_tier_table,
    seed_default_tiers,
)


# ── classify ──────────────────────────────────────────────


class TestClassify:
    @pytest.mark.parametrize(
        "amount,expected",
        [
            ("0", "staff"),
            ("1", "card_customer"),
            ("99999999", "card_customer"),
            ("100000000", "angel"),
            ("244999999.99", "angel"),
            ("245000000", "founder"),
            ("1000000000", "founder"),
        ],
    )
    def test_thresholds(self, tiers, amount, expected):
        assert classify(Decimal(amount), tiers).name == expected

    def test_branch_tier_never_assigned(self, tiers):
        for amount in ("0", "1", "500000000"):
            assert classify(Decimal(amount), tiers).name != BRANCH_TIER

    def test_highest_threshold_wins_regardless_of_order(self, tiers):
        shuffled = list(reversed(tiers))
        assert classify(Decimal("300000000"), shuffled).name == "founder"

    def test_empty_table(self):
        with pytest.raises(ConfigurationError):
            classify(Decimal("100"), [])

    def test_missing_default_tier(self):
        only_angel = [TierConfig("angel", Decimal("100000000"), Decimal("2.5"), Decimal("5.0"))]
        with pytest.raises(ConfigurationError):
            classify(Decimal("10"), only_angel)


class TestGetTier:
    def test_known(self, tiers):
        assert get_tier(tiers, DEFAULT_TIER).multiplier == Decimal("1.0")

    def test_unknown(self, tiers):
        with pytest.raises(ConfigurationError):
            get_tier(tiers, "platinum")

    def test_founder_has_no_ceiling(self, tiers):
        assert not get_tier(tiers, "founder").has_ceiling
        assert get_tier(tiers, "angel").has_ceiling


# ── tier table ────────────────────────────────────────────


class TestTierTable:
    @pytest.mark.asyncio
    async def test_load_empty_table(self, db_session):
        with pytest.raises(ConfigurationError):
            await load_tier_table(db_session)

    @pytest.mark.asyncio
    async def test_seed_and_load(self, db_session):
        created = await seed_default_tiers(db_session)
        assert created == 5

        loaded = await load_tier_table(db_session)
        names = {t.name for t in loaded}
        assert names == {"founder", "angel", "card_customer", "branch", "staff"}
        assert get_tier(loaded, "angel").maxout_multiplier == Decimal("5.0")
        assert get_tier(loaded, "branch").base_shares == 200

    @pytest.mark.asyncio
    async def test_seed_is_noop_when_present(self, seeded_db):
        assert await seed_default_tiers(seeded_db) == 0
