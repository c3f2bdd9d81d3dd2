"""
Income and expense ledger.

Supplies the quarter-scoped revenue and expense aggregates the
quarterly processor distributes from.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from sharepool.models import Branch, LedgerEntry, LedgerEntryType, PeriodStatus, ProfitSharingPeriod
from sharepool.services.contribution import validate_amount
from sharepool.services.errors import NotFound
from sharepool.services.quarters import parse_quarter
from sharepool.services.rules import BusinessRules, resolve_rules

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QuarterPreview:
    period_value: str
    start_date: date
    end_date: date
    total_revenue: Decimal
    total_expenses: Decimal
    net_profit: Decimal
    distribution_pool: Decimal
    capital_pool: Decimal
    labor_pool: Decimal
    already_processed: bool

    @property
    def can_process(self) -> bool:
        return not self.already_processed


def _day_start(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


async def record_ledger_entry(
    db: AsyncSession,
    entry_type: LedgerEntryType,
    amount: Decimal,
    description: str,
    occurred_at: Optional[datetime] = None,
    branch_code: Optional[str] = None,
    user_id: Optional[int] = None,
) -> LedgerEntry:
    """Append an income or expense entry."""
    amount = validate_amount(amount)

    branch_id = None
    if branch_code:
        result = await db.execute(select(Branch).where(Branch.code == branch_code))
        branch = result.scalar_one_or_none()
        if branch is None:
            raise NotFound(f"Branch '{branch_code}' not found")
        branch_id = branch.id

    entry = LedgerEntry(
        entry_type=entry_type,
        amount=amount,
        description=description,
        branch_id=branch_id,
        occurred_at=occurred_at or datetime.now(timezone.utc),
        recorded_by_id=user_id,
    )
    db.add(entry)
    await db.flush()
    logger.debug(f"Ledger {entry_type.value} {amount}: {description}")
    return entry


async def revenue_and_expenses(
    db: AsyncSession,
    start_date: date,
    end_date: date,
) -> Tuple[Decimal, Decimal]:
    """Total income and expenses between two calendar days, both inclusive."""
    start = _day_start(start_date)
    end = _day_start(end_date + timedelta(days=1))

    result = await db.execute(
        select(
            LedgerEntry.entry_type,
            func.coalesce(func.sum(LedgerEntry.amount), 0),
        )
        .where(
            LedgerEntry.occurred_at >= start,
            LedgerEntry.occurred_at < end,
        )
        .group_by(LedgerEntry.entry_type)
    )
    totals = {row[0]: Decimal(str(row[1])) for row in result.all()}
    return (
        totals.get(LedgerEntryType.INCOME, Decimal("0")),
        totals.get(LedgerEntryType.EXPENSE, Decimal("0")),
    )


async def preview_quarter(
    db: AsyncSession,
    period_value: str,
    rules: Optional[BusinessRules] = None,
) -> QuarterPreview:
    """What processing a quarter would distribute. No side effects."""
    rules = resolve_rules(rules)
    quarter = parse_quarter(period_value, rules)
    revenue, expenses = await revenue_and_expenses(db, quarter.start_date, quarter.end_date)
    net_profit = revenue - expenses
    positive = net_profit if net_profit > 0 else Decimal("0")

    live = await db.scalar(
        select(func.count(ProfitSharingPeriod.id)).where(
            ProfitSharingPeriod.period_value == period_value,
            ProfitSharingPeriod.status != PeriodStatus.CANCELLED,
        )
    )

    return QuarterPreview(
        period_value=period_value,
        start_date=quarter.start_date,
        end_date=quarter.end_date,
        total_revenue=revenue,
        total_expenses=expenses,
        net_profit=net_profit,
        distribution_pool=positive * rules.profit_pool_rate,
        capital_pool=positive * rules.capital_pool_rate,
        labor_pool=positive * rules.labor_pool_rate,
        already_processed=bool(live),
    )
