"""
Contribution calculator.

Turns one contribution (investment, card purchase, asset, referral
commission, franchise fee) into shares and token units for its holder:

1. reclassify the tier on the new cumulative capital amount
2. shares = amount / 1,000,000 x shares per unit, or the tier's flat grant
3. tokens = token units of amount x tier multiplier
4. the contribution's value (amount x multiplier) passes through the
   Maxout Guard; shares and tokens shrink with whatever gets clamped

Balances are written only through apply_contribution, always on a row
locked by the caller.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Optional, Sequence, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sharepool.models import (
    CAPITAL_KINDS,
    ApprovalStatus,
    AuditAction,
    ContributionEvent,
    ContributionKind,
    ContributionType,
    Entity,
    HolderType,
    Referral,
)
from sharepool.services.errors import InvalidAmount, InvalidTransition, NotFound
from sharepool.services.maxout import ceiling_for, clamp
from sharepool.services.rules import BusinessRules, resolve_rules
from sharepool.services.tiers import DEFAULT_TIER, TierConfig, classify, get_tier, load_tier_table
from sharepool.services.units import MILLION, to_token_units
from sharepool.utils.audit import log_action
from sharepool.utils.money import truncate_amount

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

# Event type recorded when the caller does not name one
DEFAULT_EVENT_TYPES = {
    ContributionKind.CASH: ContributionType.INVESTMENT,
    ContributionKind.ASSET: ContributionType.ASSET_CONTRIBUTION,
    ContributionKind.CARD: ContributionType.CARD_PURCHASE,
    ContributionKind.EFFORT: ContributionType.REFERRAL_COMMISSION,
}

# Types produced by the engine itself, never recorded from outside
ENGINE_EVENT_TYPES = frozenset({
    ContributionType.WITHDRAWAL,
    ContributionType.KPI_BONUS,
    ContributionType.SHARE_DISTRIBUTION,
    ContributionType.FRANCHISE_FEE,
})


@dataclass(frozen=True)
class ContributionResult:
    """Outcome of one contribution, before it is written to the holder."""

    shares: Decimal
    tokens: Decimal
    tier: str
    previous_tier: Optional[str]
    maxout_reached: bool
    capital: bool
    proposed_value: Decimal
    allowed_value: Decimal
    cumulative_amount: Decimal
    base_investment: Decimal

    @property
    def tier_changed(self) -> bool:
        return self.previous_tier is not None and self.previous_tier != self.tier


def validate_amount(amount) -> Decimal:
    """Coerce to Decimal and require a finite positive value."""
    try:
        value = Decimal(str(amount))
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidAmount(f"Malformed amount: {amount!r}")
    if not value.is_finite() or value <= ZERO:
        raise InvalidAmount(f"Amount must be positive, got {amount!r}")
    return value


def _is_upgrade(previous_name: Optional[str], tier: TierConfig, tiers: Sequence[TierConfig]) -> bool:
    if previous_name is None or previous_name == tier.name:
        return False
    for candidate in tiers:
        if candidate.name == previous_name:
            return tier.min_investment > candidate.min_investment
    return False


def compute_contribution(
    holder,
    amount: Decimal,
    kind: ContributionKind,
    tiers: Sequence[TierConfig],
    tier_name: Optional[str] = None,
    tokens_override: Optional[Decimal] = None,
    rules: Optional[BusinessRules] = None,
) -> ContributionResult:
    """
    Compute shares, tokens and tier for a contribution. Pure.

    holder only needs cumulative_amount, base_investment,
    cumulative_distributed and tier; missing fields count as zero.
    tier_name pins the tier instead of classifying (branches).

    Raises:
        InvalidAmount: amount is not a positive number
        ConfigurationError: tier table cannot resolve a tier
    """
    rules = resolve_rules(rules)
    amount = validate_amount(amount)
    capital = kind in CAPITAL_KINDS

    cumulative = Decimal(getattr(holder, "cumulative_amount", None) or 0)
    new_cumulative = cumulative + amount if capital else cumulative

    if tier_name is not None:
        tier = get_tier(tiers, tier_name)
    else:
        tier = classify(new_cumulative, tiers)

    if tier.base_shares:
        shares = Decimal(tier.base_shares)
    else:
        shares = amount / MILLION * tier.shares_per_unit

    if tokens_override is not None:
        tokens = Decimal(tokens_override)
    else:
        tokens = to_token_units(amount, rules) * tier.multiplier

    previous = getattr(holder, "tier", None)
    base = Decimal(getattr(holder, "base_investment", None) or 0)
    if capital and (base <= ZERO or _is_upgrade(previous, tier, tiers)):
        # The ceiling follows the investment that earned the new tier
        base = new_cumulative

    proposed = amount * tier.multiplier
    guard = clamp(
        ceiling_for(base, tier),
        Decimal(getattr(holder, "cumulative_distributed", None) or 0),
        proposed,
    )
    if guard.maxout_reached:
        ratio = guard.allowed / proposed
        shares = shares * ratio
        tokens = tokens * ratio

    return ContributionResult(
        shares=truncate_amount(shares),
        tokens=truncate_amount(tokens),
        tier=tier.name,
        previous_tier=previous,
        maxout_reached=guard.maxout_reached,
        capital=capital,
        proposed_value=proposed,
        allowed_value=truncate_amount(guard.allowed),
        cumulative_amount=new_cumulative,
        base_investment=base,
    )


def _credit_shares(holder, holder_type: HolderType, shares: Decimal, capital: bool) -> None:
    if holder_type == HolderType.ENTITY:
        if capital:
            holder.capital_shares = Decimal(holder.capital_shares) + shares
        else:
            holder.labor_shares = Decimal(holder.labor_shares) + shares
    else:
        # Staff and branch shares are all labor shares
        holder.shares = Decimal(holder.shares) + shares


async def apply_contribution(
    db: AsyncSession,
    holder,
    holder_type: HolderType,
    amount: Decimal,
    kind: ContributionKind,
    event_type: ContributionType,
    tiers: Sequence[TierConfig],
    status: ApprovalStatus = ApprovalStatus.PENDING,
    tier_name: Optional[str] = None,
    tokens_override: Optional[Decimal] = None,
    description: Optional[str] = None,
    user_id: Optional[int] = None,
    rules: Optional[BusinessRules] = None,
) -> Tuple[ContributionEvent, ContributionResult]:
    """
    Compute a contribution, write it to a locked holder and append the event.

    Emits tier_changed and maxout_reached audit entries as they happen.
    """
    result = compute_contribution(
        holder, amount, kind, tiers,
        tier_name=tier_name,
        tokens_override=tokens_override,
        rules=rules,
    )
    was_maxed = bool(holder.maxout_reached)
    rebased = Decimal(holder.base_investment or 0) != result.base_investment

    if holder_type == HolderType.ENTITY:
        holder.cumulative_amount = result.cumulative_amount
    if holder_type != HolderType.STAFF:
        holder.tier = result.tier
    _credit_shares(holder, holder_type, result.shares, result.capital)
    holder.token_balance = Decimal(holder.token_balance) + result.tokens
    holder.cumulative_distributed = Decimal(holder.cumulative_distributed) + result.allowed_value
    holder.base_investment = result.base_investment
    # A new ceiling re-decides the flag, otherwise it only ever gets set
    holder.maxout_reached = result.maxout_reached if rebased else (was_maxed or result.maxout_reached)

    event = ContributionEvent(
        holder_type=holder_type,
        holder_id=holder.id,
        event_type=event_type,
        kind=kind,
        amount=validate_amount(amount),
        token_amount=result.tokens,
        shares_granted=result.shares,
        distributed_value=result.allowed_value,
        tax_amount=ZERO,
        tier_before=result.previous_tier,
        tier_after=result.tier,
        maxout_reached=result.maxout_reached,
        status=status,
        description=description,
    )
    db.add(event)
    await db.flush()

    if result.tier_changed:
        await log_action(
            db,
            user_id=None,
            action=AuditAction.TIER_CHANGED,
            target_type=holder_type.value,
            target_id=holder.id,
            action_metadata={"from": result.previous_tier, "to": result.tier, "event_id": event.id},
        )
        logger.info(f"{holder_type.value} {holder.code} tier {result.previous_tier} -> {result.tier}")

    if result.maxout_reached and not was_maxed:
        await log_action(
            db,
            user_id=None,
            action=AuditAction.MAXOUT_REACHED,
            target_type=holder_type.value,
            target_id=holder.id,
            action_metadata={
                "event_id": event.id,
                "proposed": str(result.proposed_value),
                "allowed": str(result.allowed_value),
            },
        )
        logger.info(f"{holder_type.value} {holder.code} reached maxout on event {event.id}")

    return event, result


async def lock_entity(db: AsyncSession, code: str) -> Optional[Entity]:
    """Load a member row with a row lock held until the transaction ends."""
    result = await db.execute(
        select(Entity).where(Entity.code == code).with_for_update()
    )
    return result.scalar_one_or_none()


async def _attach_referral(db: AsyncSession, entity: Entity, referral_code: str) -> None:
    result = await db.execute(
        select(Referral).where(Referral.referral_code == referral_code).with_for_update()
    )
    referral = result.scalar_one_or_none()
    if referral is None:
        raise NotFound(f"Referral code '{referral_code}' not found")
    if referral.referred_entity_id is not None:
        raise InvalidTransition(f"Referral code '{referral_code}' has already been used")
    if referral.referrer_id == entity.id:
        raise InvalidTransition("A member cannot refer themselves")
    referral.referred_entity_id = entity.id


async def record_contribution(
    db: AsyncSession,
    entity_code: str,
    amount: Decimal,
    kind: ContributionKind,
    event_type: Optional[ContributionType] = None,
    name: Optional[str] = None,
    referral_code: Optional[str] = None,
    description: Optional[str] = None,
    user_id: Optional[int] = None,
    rules: Optional[BusinessRules] = None,
) -> Tuple[ContributionEvent, ContributionResult]:
    """
    Record a member contribution as a pending event.

    The member is created on first contribution. A referral code is
    honoured only for a new member. Contributions for the same member
    are serialized by the row lock.
    """
    rules = resolve_rules(rules)
    amount = validate_amount(amount)
    event_type = event_type or DEFAULT_EVENT_TYPES[kind]
    if event_type in ENGINE_EVENT_TYPES:
        raise ValueError(f"{event_type.value} events are produced by the engine")

    tiers = await load_tier_table(db)
    entity = await lock_entity(db, entity_code)

    if entity is None:
        entity = Entity(
            code=entity_code,
            name=name,
            tier=DEFAULT_TIER,
            cumulative_amount=ZERO,
            capital_shares=ZERO,
            labor_shares=ZERO,
            withdrawable_balance=ZERO,
            token_balance=ZERO,
            base_investment=ZERO,
            cumulative_distributed=ZERO,
            maxout_reached=False,
            is_active=True,
        )
        db.add(entity)
        await db.flush()
        logger.info(f"Created entity {entity_code}")
        if referral_code:
            await _attach_referral(db, entity, referral_code)
    elif not entity.is_active:
        raise InvalidTransition(f"Entity '{entity_code}' is deactivated")

    event, result = await apply_contribution(
        db,
        entity,
        HolderType.ENTITY,
        amount,
        kind,
        event_type,
        tiers,
        description=description,
        user_id=user_id,
        rules=rules,
    )

    await log_action(
        db,
        user_id=user_id,
        action=AuditAction.CONTRIBUTION_RECORDED,
        target_type="entity",
        target_id=entity.id,
        action_metadata={
            "event_id": event.id,
            "amount": str(amount),
            "kind": kind.value,
            "shares": str(result.shares),
            "tokens": str(result.tokens),
        },
    )

    logger.info(
        f"Contribution {event.id} for {entity_code}: {amount} {kind.value} -> "
        f"{result.shares} shares, {result.tokens} tokens, tier {result.tier}"
    )
    return event, result


async def rebase_investment(
    db: AsyncSession,
    entity_code: str,
    user_id: Optional[int] = None,
) -> Entity:
    """
    Move a member's base investment to their cumulative capital amount.

    Clears the maxout flag when the new ceiling leaves headroom.
    """
    tiers = await load_tier_table(db)
    entity = await lock_entity(db, entity_code)
    if entity is None:
        raise NotFound(f"Entity '{entity_code}' not found")

    new_base = Decimal(entity.cumulative_amount)
    if new_base <= ZERO:
        raise InvalidAmount(f"Entity '{entity_code}' has no capital contributions")

    old_base = entity.base_investment
    entity.base_investment = new_base
    ceiling = ceiling_for(new_base, get_tier(tiers, entity.tier))
    entity.maxout_reached = ceiling is not None and Decimal(entity.cumulative_distributed) >= ceiling

    await log_action(
        db,
        user_id=user_id,
        action=AuditAction.INVESTMENT_REBASED,
        target_type="entity",
        target_id=entity.id,
        action_metadata={
            "from": str(old_base),
            "to": str(new_base),
            "maxout_reached": entity.maxout_reached,
        },
    )
    logger.info(f"Rebased {entity_code} base investment {old_base} -> {new_base}")
    return entity


def mark_decided(event: ContributionEvent, status: ApprovalStatus, user_id: Optional[int]) -> None:
    """Move a pending event to its final approval status."""
    if event.status != ApprovalStatus.PENDING:
        raise InvalidTransition(
            f"Contribution {event.id} is {event.status.value}, only pending events can be decided"
        )
    event.status = status
    event.approved_by_id = user_id
    event.approved_at = datetime.now(timezone.utc)
