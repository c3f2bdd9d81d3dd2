"""
Quarterly profit distribution processor.

For one quarter, in a single transaction:

1. validate the quarter and load the tier table (no writes yet)
2. refuse if a live run exists, or cancel it when force reprocessing
3. insert the new run; the partial unique index on live runs turns a
   concurrent duplicate into AlreadyProcessed
4. credit the quarter's eligible KPI awards and mark KPI records processed
5. net profit from the ledger; nothing is distributed when it is not positive
6. split the pool into capital and labor sub-pools, pay every holder pro
   rata through the Maxout Guard, record one distribution per holder and
   pool
7. mark the run completed

Any exception leaves nothing behind: the caller's session rolls back.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from sharepool.models import (
    ApprovalStatus,
    AuditAction,
    Branch,
    ContributionEvent,
    ContributionKind,
    ContributionType,
    DistributionType,
    Entity,
    HolderType,
    KpiPeriodRecord,
    KpiState,
    PaymentStatus,
    PeriodStatus,
    ProfitDistributionRecord,
    ProfitSharingPeriod,
    StaffMember,
)
from sharepool.services.errors import AlreadyProcessed, InvalidPeriod, InvalidTransition, NotFound
from sharepool.services.holders import lock_holder
from sharepool.services.ledger import revenue_and_expenses
from sharepool.services.maxout import ceiling_for, clamp
from sharepool.services.quarters import parse_quarter
from sharepool.services.rules import BusinessRules, resolve_rules
from sharepool.services.tiers import DEFAULT_TIER, TierConfig, get_tier, load_tier_table
from sharepool.services.units import to_currency, to_token_units
from sharepool.utils.audit import log_action
from sharepool.utils.money import format_currency, truncate_amount

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
PERIOD_QUARTER = "quarter"


@dataclass
class RosterEntry:
    """One shareholding holder as seen at computation time."""

    holder_type: HolderType
    holder: object
    tier: TierConfig
    capital_shares: Decimal
    labor_shares: Decimal

    @property
    def total_shares(self) -> Decimal:
        return self.capital_shares + self.labor_shares


async def get_live_period(
    db: AsyncSession,
    period_value: str,
    period: str = PERIOD_QUARTER,
) -> Optional[ProfitSharingPeriod]:
    """The non-cancelled run for a quarter, if any."""
    result = await db.execute(
        select(ProfitSharingPeriod)
        .where(
            ProfitSharingPeriod.period == period,
            ProfitSharingPeriod.period_value == period_value,
            ProfitSharingPeriod.status != PeriodStatus.CANCELLED,
        )
        .options(selectinload(ProfitSharingPeriod.distributions))
    )
    return result.scalar_one_or_none()


def _holder_tier(holder_type: HolderType, holder, tiers: Sequence[TierConfig]) -> TierConfig:
    if holder_type == HolderType.STAFF:
        return get_tier(tiers, DEFAULT_TIER)
    return get_tier(tiers, holder.tier)


def _refresh_maxout_flag(holder, tier: TierConfig) -> None:
    ceiling = ceiling_for(holder.base_investment, tier)
    holder.maxout_reached = ceiling is not None and Decimal(holder.cumulative_distributed) >= ceiling


async def cancel_period(
    db: AsyncSession,
    period: ProfitSharingPeriod,
    tiers: Sequence[TierConfig],
    user_id: Optional[int] = None,
) -> None:
    """
    Cancel a run and give back the maxout headroom its pending payouts used.

    Refused when any payout of the run has already been paid.
    """
    distributions = list(period.distributions)
    if any(d.payment_status == PaymentStatus.PAID for d in distributions):
        raise AlreadyProcessed(
            f"{period.period_value} has paid distributions and cannot be reprocessed",
            existing=period,
        )

    for dist in distributions:
        if dist.payment_status != PaymentStatus.PENDING:
            continue
        holder = await lock_holder(db, dist.holder_type, dist.holder_id)
        holder.cumulative_distributed = (
            Decimal(holder.cumulative_distributed) - Decimal(dist.distribution_amount)
        )
        _refresh_maxout_flag(holder, _holder_tier(dist.holder_type, holder, tiers))
        dist.payment_status = PaymentStatus.CANCELLED

    period.status = PeriodStatus.CANCELLED
    period.cancelled_at = datetime.now(timezone.utc)
    await db.flush()

    await log_action(
        db,
        user_id=user_id,
        action=AuditAction.PERIOD_CANCELLED,
        target_type="period",
        target_id=period.id,
        action_metadata={"period": period.period_value, "distributions": len(distributions)},
    )
    logger.info(f"Cancelled profit sharing run {period.id} for {period.period_value}")


async def credit_kpi_awards(
    db: AsyncSession,
    period_value: str,
    rules: BusinessRules,
) -> Tuple[Dict[int, bool], int]:
    """
    Credit unprocessed KPI awards for a quarter and mark the records processed.

    Returns branch eligibility by branch id and the number of records
    processed. Eligibility is read from every record of the quarter,
    including records processed by an earlier, cancelled run.
    """
    result = await db.execute(
        select(KpiPeriodRecord)
        .where(KpiPeriodRecord.period_value == period_value)
        .with_for_update()
    )
    records = result.scalars().all()

    branch_eligibility: Dict[int, bool] = {}
    processed = 0
    now = datetime.now(timezone.utc)

    for record in records:
        if record.holder_type == HolderType.BRANCH:
            branch_eligibility[record.holder_id] = bool(record.is_eligible)
        if record.is_processed:
            continue

        if record.is_eligible:
            holder = await lock_holder(db, record.holder_type, record.holder_id)
            shares = Decimal(record.shares_awarded)
            tokens = Decimal(record.token_earned)
            holder.shares = Decimal(holder.shares) + shares
            holder.token_balance = Decimal(holder.token_balance) + tokens
            db.add(ContributionEvent(
                holder_type=record.holder_type,
                holder_id=record.holder_id,
                event_type=ContributionType.KPI_BONUS,
                kind=ContributionKind.EFFORT,
                amount=to_currency(tokens, rules),
                token_amount=tokens,
                shares_granted=shares,
                distributed_value=ZERO,
                tax_amount=ZERO,
                maxout_reached=False,
                status=ApprovalStatus.COMPLETED,
                period_value=period_value,
                description=f"KPI award {period_value}: {record.slots_earned} slots",
            ))

        record.state = KpiState.PROCESSED
        record.is_processed = True
        record.processed_at = now
        processed += 1

    await db.flush()
    return branch_eligibility, processed


async def build_roster(
    db: AsyncSession,
    tiers: Sequence[TierConfig],
    branch_eligibility: Dict[int, bool],
) -> List[RosterEntry]:
    """
    Every active holder with shares, locked for the rest of the run.

    Branches only take part in quarters where their KPI is eligible.
    """
    roster: List[RosterEntry] = []

    entities = (await db.execute(
        select(Entity).where(Entity.is_active == True).order_by(Entity.id).with_for_update()
    )).scalars().all()
    for entity in entities:
        entry = RosterEntry(
            holder_type=HolderType.ENTITY,
            holder=entity,
            tier=get_tier(tiers, entity.tier),
            capital_shares=Decimal(entity.capital_shares),
            labor_shares=Decimal(entity.labor_shares),
        )
        if entry.total_shares > ZERO:
            roster.append(entry)

    staff = (await db.execute(
        select(StaffMember).where(StaffMember.is_active == True).order_by(StaffMember.id).with_for_update()
    )).scalars().all()
    for member in staff:
        if Decimal(member.shares) > ZERO:
            roster.append(RosterEntry(
                holder_type=HolderType.STAFF,
                holder=member,
                tier=get_tier(tiers, DEFAULT_TIER),
                capital_shares=ZERO,
                labor_shares=Decimal(member.shares),
            ))

    branches = (await db.execute(
        select(Branch).where(Branch.is_active == True).order_by(Branch.id).with_for_update()
    )).scalars().all()
    for branch in branches:
        if Decimal(branch.shares) <= ZERO:
            continue
        if not branch_eligibility.get(branch.id, False):
            logger.debug(f"Branch {branch.code} not KPI eligible, left out of the roster")
            continue
        roster.append(RosterEntry(
            holder_type=HolderType.BRANCH,
            holder=branch,
            tier=get_tier(tiers, branch.tier),
            capital_shares=ZERO,
            labor_shares=Decimal(branch.shares),
        ))

    return roster


async def _pay_holder(
    db: AsyncSession,
    period: ProfitSharingPeriod,
    entry: RosterEntry,
    distribution_type: DistributionType,
    shares: Decimal,
    per_share: Decimal,
    rules: BusinessRules,
) -> ProfitDistributionRecord:
    holder = entry.holder
    raw = truncate_amount(per_share * shares)
    guard = clamp(
        ceiling_for(holder.base_investment, entry.tier),
        holder.cumulative_distributed,
        raw,
    )
    amount = truncate_amount(guard.allowed)

    holder.cumulative_distributed = Decimal(holder.cumulative_distributed) + amount
    if guard.maxout_reached and not holder.maxout_reached:
        holder.maxout_reached = True
        await log_action(
            db,
            user_id=None,
            action=AuditAction.MAXOUT_REACHED,
            target_type=entry.holder_type.value,
            target_id=holder.id,
            action_metadata={"period": period.period_value, "raw": str(raw), "allowed": str(amount)},
        )
        logger.info(f"{entry.holder_type.value} {holder.code} reached maxout in {period.period_value}")

    record = ProfitDistributionRecord(
        profit_sharing_id=period.id,
        holder_type=entry.holder_type,
        holder_id=holder.id,
        holder_name=getattr(holder, "name", None) or holder.code,
        distribution_type=distribution_type,
        shares_owned=shares,
        raw_amount=raw,
        distribution_amount=amount,
        token_amount=truncate_amount(to_token_units(amount, rules)),
        maxout_applied=guard.maxout_reached,
        payment_status=PaymentStatus.PENDING,
    )
    db.add(record)
    return record


async def process_quarterly_distribution(
    db: AsyncSession,
    period_value: str,
    force_reprocess: bool = False,
    period: str = PERIOD_QUARTER,
    user_id: Optional[int] = None,
    rules: Optional[BusinessRules] = None,
) -> ProfitSharingPeriod:
    """
    Distribute a quarter's profit pool. Idempotent per quarter.

    Raises:
        InvalidPeriod: bad period literal or quarter value
        AlreadyProcessed: a live run exists (carries it) and force_reprocess
            is off, a concurrent run won the race, or the live run has
            paid distributions
        ConfigurationError: tier table missing or incomplete
    """
    rules = resolve_rules(rules)
    if period != PERIOD_QUARTER:
        raise InvalidPeriod(f"Unsupported period '{period}'")
    quarter = parse_quarter(period_value, rules)
    tiers = await load_tier_table(db)

    existing = await get_live_period(db, period_value, period)
    if existing is not None:
        if not force_reprocess:
            raise AlreadyProcessed(f"{period_value} has already been processed", existing=existing)
        await cancel_period(db, existing, tiers, user_id=user_id)

    run = ProfitSharingPeriod(
        period=period,
        period_value=period_value,
        total_revenue=ZERO,
        total_expenses=ZERO,
        net_profit=ZERO,
        distribution_pool=ZERO,
        capital_pool=ZERO,
        labor_pool=ZERO,
        total_shares=ZERO,
        capital_shares=ZERO,
        labor_shares=ZERO,
        profit_per_share=ZERO,
        capital_profit_per_share=ZERO,
        labor_profit_per_share=ZERO,
        total_distributed=ZERO,
        undistributed_amount=ZERO,
        status=PeriodStatus.PENDING,
        processed_by_id=user_id,
    )
    db.add(run)
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        winner = await get_live_period(db, period_value, period)
        logger.warning(f"Concurrent processing of {period_value} detected")
        raise AlreadyProcessed(f"{period_value} is being processed concurrently", existing=winner)

    branch_eligibility, kpi_processed = await credit_kpi_awards(db, period_value, rules)

    revenue, expenses = await revenue_and_expenses(db, quarter.start_date, quarter.end_date)
    net_profit = revenue - expenses
    run.total_revenue = revenue
    run.total_expenses = expenses
    run.net_profit = net_profit

    roster = await build_roster(db, tiers, branch_eligibility)
    capital_total = sum((e.capital_shares for e in roster), ZERO)
    labor_total = sum((e.labor_shares for e in roster), ZERO)
    total_shares = capital_total + labor_total
    run.capital_shares = capital_total
    run.labor_shares = labor_total
    run.total_shares = total_shares

    records: List[ProfitDistributionRecord] = []
    if net_profit > ZERO:
        pool = net_profit * rules.profit_pool_rate
        capital_pool = net_profit * rules.capital_pool_rate
        labor_pool = net_profit * rules.labor_pool_rate
        capital_pps = capital_pool / capital_total if capital_total > ZERO else ZERO
        labor_pps = labor_pool / labor_total if labor_total > ZERO else ZERO

        run.distribution_pool = truncate_amount(pool)
        run.capital_pool = truncate_amount(capital_pool)
        run.labor_pool = truncate_amount(labor_pool)
        run.profit_per_share = truncate_amount(pool / total_shares) if total_shares > ZERO else ZERO
        run.capital_profit_per_share = truncate_amount(capital_pps)
        run.labor_profit_per_share = truncate_amount(labor_pps)

        for entry in roster:
            if entry.capital_shares > ZERO and capital_pps > ZERO:
                records.append(await _pay_holder(
                    db, run, entry, DistributionType.CAPITAL, entry.capital_shares, capital_pps, rules,
                ))
            if entry.labor_shares > ZERO and labor_pps > ZERO:
                records.append(await _pay_holder(
                    db, run, entry, DistributionType.LABOR, entry.labor_shares, labor_pps, rules,
                ))

        distributed = sum((r.distribution_amount for r in records), ZERO)
        run.total_distributed = distributed
        run.undistributed_amount = run.distribution_pool - distributed
    else:
        logger.info(f"{period_value}: net profit {net_profit}, nothing to distribute")

    # Staff without shares are outside the roster but still get refreshed
    active_staff = (await db.execute(
        select(StaffMember).where(StaffMember.is_active == True)
    )).scalars().all()
    for member in active_staff:
        held = Decimal(member.shares)
        share = held / total_shares * 100 if total_shares > ZERO and held > ZERO else ZERO
        member.equity_percentage = share.quantize(Decimal("0.0001"))

    run.status = PeriodStatus.COMPLETED
    run.processed_at = datetime.now(timezone.utc)
    await db.flush()

    await log_action(
        db,
        user_id=user_id,
        action=AuditAction.DISTRIBUTION_COMMITTED,
        target_type="period",
        target_id=run.id,
        action_metadata={
            "period": period_value,
            "net_profit": str(net_profit),
            "pool": str(run.distribution_pool),
            "distributions": len(records),
            "total_distributed": str(run.total_distributed),
            "kpi_processed": kpi_processed,
        },
    )
    logger.info(
        f"Processed {period_value}: pool {format_currency(run.distribution_pool)}, "
        f"{len(records)} distributions, {format_currency(run.total_distributed)} distributed"
    )

    await db.refresh(run, attribute_names=["distributions"])
    return run


async def mark_distribution_paid(
    db: AsyncSession,
    distribution_id: int,
    user_id: Optional[int] = None,
) -> ProfitDistributionRecord:
    """
    Move a pending distribution to paid.

    A member's payout is credited to their withdrawable balance.
    """
    result = await db.execute(
        select(ProfitDistributionRecord)
        .where(ProfitDistributionRecord.id == distribution_id)
        .with_for_update()
    )
    dist = result.scalar_one_or_none()
    if dist is None:
        raise NotFound(f"Distribution {distribution_id} not found")
    if dist.payment_status != PaymentStatus.PENDING:
        raise InvalidTransition(
            f"Distribution {distribution_id} is {dist.payment_status.value}, only pending can be paid"
        )

    if dist.holder_type == HolderType.ENTITY:
        holder = await lock_holder(db, HolderType.ENTITY, dist.holder_id)
        holder.withdrawable_balance = Decimal(holder.withdrawable_balance) + Decimal(dist.distribution_amount)

    dist.payment_status = PaymentStatus.PAID
    dist.paid_at = datetime.now(timezone.utc)

    await log_action(
        db,
        user_id=user_id,
        action=AuditAction.DISTRIBUTION_PAID,
        target_type="distribution",
        target_id=dist.id,
        action_metadata={"amount": str(dist.distribution_amount), "holder": f"{dist.holder_type.value}:{dist.holder_id}"},
    )
    return dist


async def process_all_payments(
    db: AsyncSession,
    period_value: str,
    user_id: Optional[int] = None,
) -> Tuple[int, Decimal]:
    """Pay every pending distribution of a quarter's live run."""
    run = await get_live_period(db, period_value)
    if run is None or run.status != PeriodStatus.COMPLETED:
        raise NotFound(f"No completed run for {period_value}")

    count = 0
    total = ZERO
    for dist in run.distributions:
        if dist.payment_status != PaymentStatus.PENDING:
            continue
        await mark_distribution_paid(db, dist.id, user_id=user_id)
        count += 1
        total += Decimal(dist.distribution_amount)

    logger.info(f"Paid {count} distributions for {period_value}, total {format_currency(total)}")
    return count, total
