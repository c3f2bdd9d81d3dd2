"""
Tests for approving and rejecting pending events.
"""

from decimal import Decimal

import pytest
from sqlalchemy import select

from sharepool.models import ApprovalStatus, ContributionKind, Entity
from sharepool.services.approval import approve_contribution, reject_contribution
from sharepool.services.contribution import record_contribution
from sharepool.services.errors import InvalidTransition, NotFound
from sharepool.services.holders import open_branch
from sharepool.services.withdrawal import request_withdrawal


async def _entity(db, code):
    return (await db.execute(select(Entity).where(Entity.code == code))).scalar_one()


class TestApprove:
    @pytest.mark.asyncio
    async def test_approve_pending(self, seeded_db):
        event, _ = await record_contribution(seeded_db, "A-001", Decimal("1000000"), ContributionKind.CASH)

        approved = await approve_contribution(seeded_db, event.id)

        assert approved.status == ApprovalStatus.APPROVED
        assert approved.approved_at is not None

    @pytest.mark.asyncio
    async def test_decided_event_cannot_change(self, seeded_db):
        event, _ = await record_contribution(seeded_db, "A-002", Decimal("1000000"), ContributionKind.CASH)
        await approve_contribution(seeded_db, event.id)

        with pytest.raises(InvalidTransition):
            await approve_contribution(seeded_db, event.id)
        with pytest.raises(InvalidTransition):
            await reject_contribution(seeded_db, event.id)

    @pytest.mark.asyncio
    async def test_unknown_event(self, seeded_db):
        with pytest.raises(NotFound):
            await approve_contribution(seeded_db, 12345)


class TestReject:
    @pytest.mark.asyncio
    async def test_reject_reverses_first_contribution(self, seeded_db):
        event, _ = await record_contribution(seeded_db, "A-010", Decimal("100000000"), ContributionKind.CASH)

        rejected = await reject_contribution(seeded_db, event.id, reason="Bounced transfer")
        entity = await _entity(seeded_db, "A-010")

        assert rejected.status == ApprovalStatus.REJECTED
        assert entity.capital_shares == Decimal("0")
        assert entity.cumulative_amount == Decimal("0")
        assert entity.base_investment == Decimal("0")
        assert entity.token_balance == Decimal("0")
        assert entity.cumulative_distributed == Decimal("0")
        assert entity.tier == "staff"
        assert not entity.maxout_reached

    @pytest.mark.asyncio
    async def test_reject_drops_tier(self, seeded_db):
        await record_contribution(seeded_db, "A-011", Decimal("50000000"), ContributionKind.CASH)
        event, result = await record_contribution(seeded_db, "A-011", Decimal("60000000"), ContributionKind.CASH)
        assert result.tier == "angel"

        await reject_contribution(seeded_db, event.id)
        entity = await _entity(seeded_db, "A-011")

        assert entity.tier == "card_customer"
        assert entity.cumulative_amount == Decimal("50000000")
        assert entity.capital_shares == Decimal("50")
        assert entity.base_investment == Decimal("50000000")

    @pytest.mark.asyncio
    async def test_reject_first_capital_moves_base_to_what_remains(self, seeded_db):
        first, _ = await record_contribution(seeded_db, "A-013", Decimal("60000000"), ContributionKind.CASH)
        await record_contribution(seeded_db, "A-013", Decimal("20000000"), ContributionKind.CASH)

        await reject_contribution(seeded_db, first.id)
        entity = await _entity(seeded_db, "A-013")

        assert entity.cumulative_amount == Decimal("20000000")
        assert entity.base_investment == Decimal("20000000")
        assert entity.tier == "card_customer"

    @pytest.mark.asyncio
    async def test_reject_effort_keeps_capital(self, seeded_db):
        await record_contribution(seeded_db, "A-012", Decimal("10000000"), ContributionKind.CASH)
        event, _ = await record_contribution(seeded_db, "A-012", Decimal("2000000"), ContributionKind.EFFORT)

        await reject_contribution(seeded_db, event.id)
        entity = await _entity(seeded_db, "A-012")

        assert entity.labor_shares == Decimal("0")
        assert entity.capital_shares == Decimal("10")
        assert entity.cumulative_amount == Decimal("10000000")

    @pytest.mark.asyncio
    async def test_reject_withdrawal_refunds(self, seeded_db, make_entity):
        entity = await make_entity("A-020", withdrawable_balance=Decimal("20000000"))
        event = await request_withdrawal(seeded_db, "A-020", Decimal("12000000"))

        await reject_contribution(seeded_db, event.id)

        assert entity.withdrawable_balance == Decimal("20000000")

    @pytest.mark.asyncio
    async def test_reject_franchise_fee_closes_branch(self, seeded_db):
        branch, event, _ = await open_branch(seeded_db, "B-010", "Harbor", Decimal("300000000"))

        await reject_contribution(seeded_db, event.id)

        assert not branch.is_active
        assert branch.shares == Decimal("0")
        assert branch.base_investment == Decimal("0")
        assert branch.token_balance == Decimal("0")
