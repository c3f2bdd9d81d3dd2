"""
KPI scoring and slot engine.

Per holder and quarter: Uncomputed -> Scored -> (Ineligible | Eligible)
-> Processed. Scoring is pure; the Processed transition belongs to the
quarterly distribution processor.

Points and score are separate tracks: points drive the token bonus,
score drives eligibility and slots.
"""

import logging
from dataclasses import dataclass
from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sharepool.models import AuditAction, Branch, HolderType, KpiPeriodRecord, KpiState, StaffMember
from sharepool.services.errors import InvalidAmount, NotFound
from sharepool.services.quarters import parse_quarter
from sharepool.services.rules import BusinessRules, resolve_rules
from sharepool.utils.audit import log_action

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
SCORE_PLACES = Decimal("0.0001")


@dataclass(frozen=True)
class KpiMetrics:
    """Raw quarterly performance figures."""

    card_sales: int
    customer_retention: Decimal
    revenue: Decimal
    target_revenue: Decimal

    def validate(self) -> None:
        if self.card_sales < 0:
            raise InvalidAmount("card_sales must not be negative")
        for name in ("customer_retention", "revenue", "target_revenue"):
            if Decimal(getattr(self, name)) < ZERO:
                raise InvalidAmount(f"{name} must not be negative")


@dataclass(frozen=True)
class KpiOutcome:
    score: Decimal
    total_points: Decimal
    state: KpiState
    eligible: bool
    slots: int
    shares_awarded: Decimal
    token_earned: Decimal


def compute_points(
    card_sales: int,
    customer_retention: Decimal,
    rules: Optional[BusinessRules] = None,
) -> Decimal:
    """KPI points: card sales weighted per sale plus retention, rounded half-up."""
    rules = resolve_rules(rules)
    raw = Decimal(card_sales) * rules.points_per_card_sale + Decimal(customer_retention)
    return raw.quantize(Decimal("1"), rounding=ROUND_HALF_UP)


def compute_score(metrics: KpiMetrics, rules: Optional[BusinessRules] = None) -> Decimal:
    """
    Weighted percentage score, 0-100 and above.

    Revenue attainment is revenue / target x 100, zero without a target.
    Truncated (never rounded up) to four places so a score just under the
    eligibility line stays under it.
    """
    rules = resolve_rules(rules)
    target = Decimal(metrics.target_revenue)
    attainment = Decimal(metrics.revenue) / target * 100 if target > ZERO else ZERO
    card_points = Decimal(metrics.card_sales) * rules.points_per_card_sale

    score = (
        rules.kpi_weight_revenue * attainment
        + rules.kpi_weight_retention * Decimal(metrics.customer_retention)
        + rules.kpi_weight_card_sales * card_points
    )
    return score.quantize(SCORE_PLACES, rounding=ROUND_DOWN)


def evaluate_score(
    score: Decimal,
    total_points: Decimal,
    rules: Optional[BusinessRules] = None,
) -> KpiOutcome:
    """Eligibility, slots, shares and token bonus for a score."""
    rules = resolve_rules(rules)
    score = Decimal(score)
    total_points = Decimal(total_points)

    if score < rules.kpi_eligibility_score:
        return KpiOutcome(
            score=score,
            total_points=total_points,
            state=KpiState.INELIGIBLE,
            eligible=False,
            slots=0,
            shares_awarded=ZERO,
            token_earned=ZERO,
        )

    slots = int(score // rules.kpi_eligibility_score)
    return KpiOutcome(
        score=score,
        total_points=total_points,
        state=KpiState.ELIGIBLE,
        eligible=True,
        slots=slots,
        shares_awarded=Decimal(slots * rules.shares_per_slot),
        token_earned=total_points * rules.tokens_per_kpi_point,
    )


def score_metrics(metrics: KpiMetrics, rules: Optional[BusinessRules] = None) -> KpiOutcome:
    """Validate metrics and run them through the whole scoring pipeline."""
    metrics.validate()
    points = compute_points(metrics.card_sales, metrics.customer_retention, rules)
    return evaluate_score(compute_score(metrics, rules), points, rules)


async def _get_holder(db: AsyncSession, holder_type: HolderType, code: str):
    model = {HolderType.STAFF: StaffMember, HolderType.BRANCH: Branch}.get(holder_type)
    if model is None:
        raise ValueError(f"KPI is not tracked for holder type '{holder_type.value}'")
    result = await db.execute(select(model).where(model.code == code))
    holder = result.scalar_one_or_none()
    if holder is None:
        raise NotFound(f"{holder_type.value} '{code}' not found")
    return holder


async def calculate_kpi(
    db: AsyncSession,
    holder_type: HolderType,
    holder_code: str,
    period_value: str,
    metrics: KpiMetrics,
    user_id: Optional[int] = None,
    rules: Optional[BusinessRules] = None,
) -> KpiPeriodRecord:
    """
    Score a holder's quarter and store the result.

    A record already processed by the quarterly run is returned
    unchanged. Unprocessed records are re-scored with the new metrics.
    """
    rules = resolve_rules(rules)
    parse_quarter(period_value, rules)
    outcome = score_metrics(metrics, rules)
    holder = await _get_holder(db, holder_type, holder_code)

    result = await db.execute(
        select(KpiPeriodRecord).where(
            KpiPeriodRecord.holder_type == holder_type,
            KpiPeriodRecord.holder_id == holder.id,
            KpiPeriodRecord.period_value == period_value,
        )
    )
    record = result.scalar_one_or_none()

    if record is not None and record.is_processed:
        logger.debug(f"KPI for {holder_type.value} {holder_code} {period_value} already processed")
        return record

    if record is None:
        record = KpiPeriodRecord(
            holder_type=holder_type,
            holder_id=holder.id,
            period_value=period_value,
            is_processed=False,
        )
        db.add(record)

    record.card_sales = metrics.card_sales
    record.customer_retention = Decimal(metrics.customer_retention)
    record.revenue = Decimal(metrics.revenue)
    record.target_revenue = Decimal(metrics.target_revenue)
    record.total_points = outcome.total_points
    record.score = outcome.score
    record.state = outcome.state
    record.is_eligible = outcome.eligible
    record.slots_earned = outcome.slots
    record.shares_awarded = outcome.shares_awarded
    record.token_earned = outcome.token_earned

    if holder_type == HolderType.BRANCH:
        holder.kpi_score = outcome.score

    await db.flush()

    await log_action(
        db,
        user_id=user_id,
        action=AuditAction.KPI_CALCULATED,
        target_type=holder_type.value,
        target_id=holder.id,
        action_metadata={
            "period": period_value,
            "score": str(outcome.score),
            "eligible": outcome.eligible,
            "slots": outcome.slots,
        },
    )

    logger.info(
        f"KPI {holder_type.value} {holder_code} {period_value}: score={outcome.score} "
        f"state={outcome.state.value} slots={outcome.slots}"
    )
    return record
