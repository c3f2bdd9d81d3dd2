"""
Tests for the contribution calculator and contribution recording.

Covers:
- shares, tokens and tier for each contribution kind
- Maxout Guard scaling of shares and tokens
- recording creates members, attaches referrals and writes audit rows
"""

from decimal import Decimal
from types import SimpleNamespace

import pytest
from sqlalchemy import select

from sharepool.models import (
    ApprovalStatus,
    AuditAction,
    AuditLog,
    ContributionKind,
    ContributionType,
    Entity,
)
from sharepool.services.contribution import (
    compute_contribution,
    rebase_investment,
    record_contribution,
    validate_amount,
)
from sharepool.services.errors import InvalidAmount, InvalidTransition, NotFound
from sharepool.services.referral import create_referral


def _make_holder(**kwargs):
    defaults = {
        "cumulative_amount": Decimal("0"),
        "base_investment": Decimal("0"),
        "cumulative_distributed": Decimal("0"),
        "tier": None,
    }
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


# ── validate_amount ───────────────────────────────────────


class TestValidateAmount:
    @pytest.mark.parametrize("amount", [0, -5, "abc", "NaN", "Infinity", None])
    def test_rejects(self, amount):
        with pytest.raises(InvalidAmount):
            validate_amount(amount)

    def test_accepts_strings_and_numbers(self):
        assert validate_amount("1000000") == Decimal("1000000")
        assert validate_amount(5) == Decimal("5")


# ── compute_contribution ──────────────────────────────────


class TestComputeContribution:
    def test_first_angel_investment(self, tiers, rules):
        result = compute_contribution(
            _make_holder(), Decimal("100000000"), ContributionKind.CASH, tiers, rules=rules,
        )
        assert result.tier == "angel"
        assert result.shares == Decimal("100")
        assert result.tokens == Decimal("25000")  # 10,000 token units x 2.5
        assert result.base_investment == Decimal("100000000")
        assert result.cumulative_amount == Decimal("100000000")
        assert not result.maxout_reached

    def test_founder_is_never_clamped(self, tiers, rules):
        holder = _make_holder(
            cumulative_amount=Decimal("250000000"),
            base_investment=Decimal("250000000"),
            cumulative_distributed=Decimal("10000000000"),
            tier="founder",
        )
        result = compute_contribution(holder, Decimal("10000000"), ContributionKind.CASH, tiers, rules=rules)
        assert result.tier == "founder"
        assert result.tokens == Decimal("3000")
        assert not result.maxout_reached

    def test_angel_maxout_scales_shares_and_tokens(self, tiers, rules):
        """480M paid under a 500M ceiling: 16M x 2.5 = 40M proposed, 20M allowed."""
        holder = _make_holder(
            cumulative_amount=Decimal("100000000"),
            base_investment=Decimal("100000000"),
            cumulative_distributed=Decimal("480000000"),
            tier="angel",
        )
        result = compute_contribution(holder, Decimal("16000000"), ContributionKind.CASH, tiers, rules=rules)
        assert result.maxout_reached
        assert result.proposed_value == Decimal("40000000")
        assert result.allowed_value == Decimal("20000000")
        assert result.shares == Decimal("8")
        assert result.tokens == Decimal("2000")
        assert holder.cumulative_distributed + result.allowed_value == Decimal("500000000")

    def test_effort_does_not_change_capital(self, tiers, rules):
        holder = _make_holder(cumulative_amount=Decimal("5000000"), tier="card_customer")
        result = compute_contribution(holder, Decimal("1000000"), ContributionKind.EFFORT, tiers, rules=rules)
        assert not result.capital
        assert result.cumulative_amount == Decimal("5000000")
        assert result.tier == "card_customer"
        assert result.shares == Decimal("1")
        assert result.base_investment == Decimal("0")

    def test_card_purchase_counts_as_capital(self, tiers, rules):
        result = compute_contribution(_make_holder(), Decimal("2000000"), ContributionKind.CARD, tiers, rules=rules)
        assert result.capital
        assert result.tier == "card_customer"
        assert result.tokens == Decimal("200")

    def test_tier_upgrade(self, tiers, rules):
        holder = _make_holder(
            cumulative_amount=Decimal("90000000"),
            base_investment=Decimal("90000000"),
            tier="card_customer",
        )
        result = compute_contribution(holder, Decimal("20000000"), ContributionKind.CASH, tiers, rules=rules)
        assert result.previous_tier == "card_customer"
        assert result.tier == "angel"
        assert result.tier_changed
        # An upgrade moves the ceiling onto the cumulative capital amount
        assert result.base_investment == Decimal("110000000")

    def test_same_tier_keeps_base(self, tiers, rules):
        holder = _make_holder(
            cumulative_amount=Decimal("100000000"),
            base_investment=Decimal("100000000"),
            tier="angel",
        )
        result = compute_contribution(holder, Decimal("20000000"), ContributionKind.CASH, tiers, rules=rules)
        assert not result.tier_changed
        assert result.base_investment == Decimal("100000000")

    def test_pinned_tier_with_flat_grant(self, tiers, rules):
        result = compute_contribution(
            _make_holder(),
            Decimal("500000000"),
            ContributionKind.CASH,
            tiers,
            tier_name="branch",
            tokens_override=Decimal("20000"),
            rules=rules,
        )
        assert result.tier == "branch"
        assert result.shares == Decimal("200")
        assert result.tokens == Decimal("20000")
        assert not result.maxout_reached

    def test_invalid_amount(self, tiers, rules):
        with pytest.raises(InvalidAmount):
            compute_contribution(_make_holder(), Decimal("0"), ContributionKind.CASH, tiers, rules=rules)


# ── record_contribution ───────────────────────────────────


class TestRecordContribution:
    @pytest.mark.asyncio
    async def test_creates_member_on_first_contribution(self, seeded_db):
        event, result = await record_contribution(
            seeded_db, "M-001", Decimal("100000000"), ContributionKind.CASH, name="First Member",
        )
        entity = (await seeded_db.execute(select(Entity).where(Entity.code == "M-001"))).scalar_one()

        assert event.status == ApprovalStatus.PENDING
        assert event.event_type == ContributionType.INVESTMENT
        assert event.holder_id == entity.id
        assert entity.tier == "angel"
        assert entity.capital_shares == Decimal("100")
        assert entity.token_balance == Decimal("25000")
        assert entity.base_investment == Decimal("100000000")

    @pytest.mark.asyncio
    async def test_second_contribution_accumulates(self, seeded_db):
        await record_contribution(seeded_db, "M-002", Decimal("60000000"), ContributionKind.CASH)
        _, result = await record_contribution(seeded_db, "M-002", Decimal("50000000"), ContributionKind.ASSET)

        entity = (await seeded_db.execute(select(Entity).where(Entity.code == "M-002"))).scalar_one()
        assert result.previous_tier == "card_customer"
        assert entity.tier == "angel"
        assert entity.cumulative_amount == Decimal("110000000")
        assert entity.base_investment == Decimal("110000000")

    @pytest.mark.asyncio
    async def test_small_then_large_keeps_the_large_shares(self, seeded_db):
        await record_contribution(seeded_db, "M-005", Decimal("1000000"), ContributionKind.CASH)
        _, result = await record_contribution(seeded_db, "M-005", Decimal("200000000"), ContributionKind.CASH)

        entity = (await seeded_db.execute(select(Entity).where(Entity.code == "M-005"))).scalar_one()
        assert result.tier == "angel"
        assert result.shares == Decimal("200")
        assert result.tokens == Decimal("50000")
        assert not result.maxout_reached
        assert entity.base_investment == Decimal("201000000")
        assert entity.capital_shares == Decimal("201")
        assert not entity.maxout_reached

    @pytest.mark.asyncio
    async def test_tier_change_is_audited(self, seeded_db):
        await record_contribution(seeded_db, "M-003", Decimal("1000000"), ContributionKind.CASH)
        await record_contribution(seeded_db, "M-003", Decimal("150000000"), ContributionKind.CASH)
        await seeded_db.flush()

        actions = (await seeded_db.execute(
            select(AuditLog.action).where(AuditLog.action == AuditAction.TIER_CHANGED)
        )).scalars().all()
        assert len(actions) >= 1

    @pytest.mark.asyncio
    async def test_engine_event_types_refused(self, seeded_db):
        with pytest.raises(ValueError):
            await record_contribution(
                seeded_db, "M-004", Decimal("1000000"), ContributionKind.CASH,
                event_type=ContributionType.KPI_BONUS,
            )

    @pytest.mark.asyncio
    async def test_deactivated_member(self, make_entity, seeded_db):
        await make_entity("M-005", is_active=False)
        with pytest.raises(InvalidTransition):
            await record_contribution(seeded_db, "M-005", Decimal("1000000"), ContributionKind.CASH)

    @pytest.mark.asyncio
    async def test_unknown_referral_code(self, seeded_db):
        with pytest.raises(NotFound):
            await record_contribution(
                seeded_db, "M-006", Decimal("1000000"), ContributionKind.CASH, referral_code="REF-NOPE",
            )

    @pytest.mark.asyncio
    async def test_referral_code_used_once(self, make_entity, seeded_db):
        await make_entity("R-001")
        referral = await create_referral(seeded_db, "R-001")

        await record_contribution(
            seeded_db, "M-007", Decimal("1000000"), ContributionKind.CASH,
            referral_code=referral.referral_code,
        )
        with pytest.raises(InvalidTransition):
            await record_contribution(
                seeded_db, "M-008", Decimal("1000000"), ContributionKind.CASH,
                referral_code=referral.referral_code,
            )


class TestRebaseInvestment:
    @pytest.mark.asyncio
    async def test_rebase_clears_maxout(self, make_entity, seeded_db):
        await make_entity(
            "M-010",
            tier="angel",
            cumulative_amount=Decimal("200000000"),
            base_investment=Decimal("100000000"),
            cumulative_distributed=Decimal("500000000"),
            maxout_reached=True,
        )
        entity = await rebase_investment(seeded_db, "M-010")
        assert entity.base_investment == Decimal("200000000")
        assert not entity.maxout_reached

    @pytest.mark.asyncio
    async def test_rebase_unknown(self, seeded_db):
        with pytest.raises(NotFound):
            await rebase_investment(seeded_db, "NOPE")

    @pytest.mark.asyncio
    async def test_rebase_without_capital(self, make_entity, seeded_db):
        await make_entity("M-011", tier="staff")
        with pytest.raises(InvalidAmount):
            await rebase_investment(seeded_db, "M-011")
