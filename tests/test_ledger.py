"""
Tests for the income/expense ledger and quarter previews.
"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from sharepool.models import LedgerEntryType
from sharepool.services.distribution import process_quarterly_distribution
from sharepool.services.errors import InvalidAmount, InvalidPeriod, NotFound
from sharepool.services.holders import open_branch
from sharepool.services.ledger import preview_quarter, record_ledger_entry, revenue_and_expenses
from sharepool.services.quarters import parse_quarter


def _utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


class TestRecordLedgerEntry:
    @pytest.mark.asyncio
    async def test_attached_to_branch(self, seeded_db):
        branch, _, _ = await open_branch(seeded_db, "B-001", "Downtown", Decimal("300000000"))
        entry = await record_ledger_entry(
            seeded_db, LedgerEntryType.INCOME, Decimal("5000000"), "Card sales", branch_code="B-001",
        )
        assert entry.branch_id == branch.id
        assert entry.occurred_at is not None

    @pytest.mark.asyncio
    async def test_unknown_branch(self, seeded_db):
        with pytest.raises(NotFound):
            await record_ledger_entry(
                seeded_db, LedgerEntryType.EXPENSE, Decimal("1"), "Rent", branch_code="NOPE",
            )

    @pytest.mark.asyncio
    async def test_amount_must_be_positive(self, seeded_db):
        with pytest.raises(InvalidAmount):
            await record_ledger_entry(seeded_db, LedgerEntryType.EXPENSE, Decimal("0"), "Nothing")


class TestRevenueAndExpenses:
    @pytest.mark.asyncio
    async def test_quarter_bounds_are_inclusive(self, seeded_db):
        await record_ledger_entry(seeded_db, LedgerEntryType.INCOME, Decimal("1000000"), "First day",
                                  occurred_at=_utc(2024, 1, 1, 0, 0))
        await record_ledger_entry(seeded_db, LedgerEntryType.INCOME, Decimal("2000000"), "Last minute",
                                  occurred_at=_utc(2024, 3, 31, 23, 59))
        await record_ledger_entry(seeded_db, LedgerEntryType.INCOME, Decimal("4000000"), "Next quarter",
                                  occurred_at=_utc(2024, 4, 1, 0, 0))
        await record_ledger_entry(seeded_db, LedgerEntryType.EXPENSE, Decimal("500000"), "Rent",
                                  occurred_at=_utc(2024, 2, 10, 9, 0))

        q1 = parse_quarter("2024-Q1")
        revenue, expenses = await revenue_and_expenses(seeded_db, q1.start_date, q1.end_date)

        assert revenue == Decimal("3000000")
        assert expenses == Decimal("500000")

    @pytest.mark.asyncio
    async def test_empty_quarter(self, seeded_db):
        q = parse_quarter("2025-Q2")
        assert await revenue_and_expenses(seeded_db, q.start_date, q.end_date) == (Decimal("0"), Decimal("0"))


class TestPreviewQuarter:
    @pytest.mark.asyncio
    async def test_preview_then_process(self, seeded_db):
        await record_ledger_entry(seeded_db, LedgerEntryType.INCOME, Decimal("100000000"), "Sales",
                                  occurred_at=_utc(2024, 5, 1))

        preview = await preview_quarter(seeded_db, "2024-Q2")
        assert preview.net_profit == Decimal("100000000")
        assert preview.distribution_pool == Decimal("49000000")
        assert preview.capital_pool == Decimal("30000000")
        assert preview.labor_pool == Decimal("19000000")
        assert preview.can_process

        await process_quarterly_distribution(seeded_db, "2024-Q2")
        assert not (await preview_quarter(seeded_db, "2024-Q2")).can_process

    @pytest.mark.asyncio
    async def test_loss_has_empty_pool(self, seeded_db):
        await record_ledger_entry(seeded_db, LedgerEntryType.EXPENSE, Decimal("1000000"), "Rent",
                                  occurred_at=_utc(2024, 5, 1))
        preview = await preview_quarter(seeded_db, "2024-Q2")
        assert preview.net_profit == Decimal("-1000000")
        assert preview.distribution_pool == Decimal("0")

    @pytest.mark.asyncio
    async def test_bad_quarter(self, seeded_db):
        with pytest.raises(InvalidPeriod):
            await preview_quarter(seeded_db, "2024-Q0")
