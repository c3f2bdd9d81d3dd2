"""
Tests for referral codes and commissions.
"""

from decimal import Decimal

import pytest
from sqlalchemy import select

from sharepool.models import (
    ApprovalStatus,
    ContributionEvent,
    ContributionKind,
    ContributionType,
    ReferralStatus,
)
from sharepool.services.approval import approve_contribution
from sharepool.services.contribution import record_contribution
from sharepool.services.errors import InvalidAmount, InvalidTransition, NotFound
from sharepool.services.referral import create_referral, generate_referral_code, mark_commission_paid


class TestReferralCode:
    def test_format(self):
        code = generate_referral_code("M-001")
        assert code.startswith("REF-M-001-")
        assert len(code.split("-")[-1]) == 6

    def test_codes_differ(self):
        assert generate_referral_code("M-001") != generate_referral_code("M-001")

    @pytest.mark.asyncio
    async def test_unknown_referrer(self, seeded_db):
        with pytest.raises(NotFound):
            await create_referral(seeded_db, "NOPE")


class TestCommission:
    async def _referred_contribution(self, db, make_entity):
        referrer = await make_entity(
            "R-001",
            cumulative_amount=Decimal("10000000"),
            base_investment=Decimal("10000000"),
            capital_shares=Decimal("10"),
            cumulative_distributed=Decimal("10000000"),
        )
        referral = await create_referral(db, "R-001")
        event, _ = await record_contribution(
            db, "N-001", Decimal("50000000"), ContributionKind.CASH,
            referral_code=referral.referral_code,
        )
        return referrer, referral, event

    @pytest.mark.asyncio
    async def test_commission_on_first_approval(self, seeded_db, make_entity):
        referrer, referral, event = await self._referred_contribution(seeded_db, make_entity)
        assert referral.status == ReferralStatus.PENDING

        await approve_contribution(seeded_db, event.id)

        assert referral.status == ReferralStatus.COMPLETED
        assert referral.commission_amount == Decimal("4000000")
        assert referral.first_contribution_id == event.id
        assert referrer.labor_shares == Decimal("4")
        assert referrer.token_balance == Decimal("400")

        commission = (await seeded_db.execute(
            select(ContributionEvent).where(
                ContributionEvent.event_type == ContributionType.REFERRAL_COMMISSION
            )
        )).scalar_one()
        assert commission.holder_id == referrer.id
        assert commission.kind == ContributionKind.EFFORT
        assert commission.status == ApprovalStatus.PENDING

    @pytest.mark.asyncio
    async def test_only_first_contribution_pays(self, seeded_db, make_entity):
        referrer, referral, event = await self._referred_contribution(seeded_db, make_entity)
        await approve_contribution(seeded_db, event.id)

        second, _ = await record_contribution(seeded_db, "N-001", Decimal("50000000"), ContributionKind.CASH)
        await approve_contribution(seeded_db, second.id)

        assert referral.commission_amount == Decimal("4000000")
        assert referrer.labor_shares == Decimal("4")

    @pytest.mark.asyncio
    async def test_partial_then_full_payment(self, seeded_db, make_entity):
        _, referral, event = await self._referred_contribution(seeded_db, make_entity)
        await approve_contribution(seeded_db, event.id)

        await mark_commission_paid(seeded_db, referral.id, Decimal("1000000"))
        assert referral.status == ReferralStatus.COMPLETED
        assert referral.commission_paid == Decimal("1000000")

        with pytest.raises(InvalidAmount):
            await mark_commission_paid(seeded_db, referral.id, Decimal("3500000"))

        await mark_commission_paid(seeded_db, referral.id, Decimal("3000000"))
        assert referral.status == ReferralStatus.PAID
        assert referral.paid_at is not None

    @pytest.mark.asyncio
    async def test_payment_before_commission_earned(self, seeded_db, make_entity):
        _, referral, _ = await self._referred_contribution(seeded_db, make_entity)
        with pytest.raises(InvalidTransition):
            await mark_commission_paid(seeded_db, referral.id, Decimal("1000000"))
