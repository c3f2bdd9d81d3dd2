"""
Approval workflow for pending contribution events.

Balances are applied when an event is recorded; approval confirms them,
rejection reverses exactly the deltas stored on the event.
"""

import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sharepool.models import (
    CAPITAL_KINDS,
    ApprovalStatus,
    AuditAction,
    ContributionEvent,
    ContributionType,
    HolderType,
)
from sharepool.services.contribution import mark_decided
from sharepool.services.errors import NotFound
from sharepool.services.holders import lock_holder
from sharepool.services.maxout import ceiling_for
from sharepool.services.referral import award_referral_commission
from sharepool.services.rules import BusinessRules
from sharepool.services.tiers import classify, get_tier, load_tier_table
from sharepool.utils.audit import log_action

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


async def _lock_event(db: AsyncSession, event_id: int) -> ContributionEvent:
    result = await db.execute(
        select(ContributionEvent).where(ContributionEvent.id == event_id).with_for_update()
    )
    event = result.scalar_one_or_none()
    if event is None:
        raise NotFound(f"Contribution {event_id} not found")
    return event


async def approve_contribution(
    db: AsyncSession,
    event_id: int,
    user_id: Optional[int] = None,
    rules: Optional[BusinessRules] = None,
) -> ContributionEvent:
    """
    Approve a pending event.

    Approving a member's capital contribution may pay a referral
    commission to whoever referred them.
    """
    event = await _lock_event(db, event_id)
    mark_decided(event, ApprovalStatus.APPROVED, user_id)

    await log_action(
        db,
        user_id=user_id,
        action=AuditAction.CONTRIBUTION_APPROVED,
        target_type="contribution",
        target_id=event.id,
        action_metadata={"amount": str(event.amount), "type": event.event_type.value},
    )

    if (
        event.holder_type == HolderType.ENTITY
        and event.kind in CAPITAL_KINDS
        and event.event_type != ContributionType.WITHDRAWAL
    ):
        entity = await lock_holder(db, HolderType.ENTITY, event.holder_id)
        await award_referral_commission(db, entity, event, user_id=user_id, rules=rules)

    logger.info(f"Contribution {event.id} approved by user {user_id}")
    return event


async def reject_contribution(
    db: AsyncSession,
    event_id: int,
    reason: Optional[str] = None,
    user_id: Optional[int] = None,
) -> ContributionEvent:
    """
    Reject a pending event and reverse what it applied.

    Withdrawals are refunded to the withdrawable balance. Contributions
    give back their shares, tokens and maxout headroom; the tier and the
    maxout flag are then recomputed from what is left.
    """
    event = await _lock_event(db, event_id)
    mark_decided(event, ApprovalStatus.REJECTED, user_id)
    holder = await lock_holder(db, event.holder_type, event.holder_id)

    if event.event_type == ContributionType.WITHDRAWAL:
        holder.withdrawable_balance = Decimal(holder.withdrawable_balance) + Decimal(event.amount)
    else:
        tiers = await load_tier_table(db)
        capital = event.kind in CAPITAL_KINDS
        shares = Decimal(event.shares_granted)

        if event.holder_type == HolderType.ENTITY:
            if capital:
                holder.capital_shares = Decimal(holder.capital_shares) - shares
                holder.cumulative_amount = Decimal(holder.cumulative_amount) - Decimal(event.amount)
                if holder.cumulative_amount <= ZERO:
                    holder.cumulative_amount = ZERO
                # The ceiling never rests on capital that is no longer there
                holder.base_investment = min(Decimal(holder.base_investment), holder.cumulative_amount)
                holder.tier = classify(holder.cumulative_amount, tiers).name
            else:
                holder.labor_shares = Decimal(holder.labor_shares) - shares
        else:
            holder.shares = Decimal(holder.shares) - shares
            if event.event_type == ContributionType.FRANCHISE_FEE:
                holder.base_investment = ZERO
                holder.is_active = False

        holder.token_balance = Decimal(holder.token_balance) - Decimal(event.token_amount)
        holder.cumulative_distributed = (
            Decimal(holder.cumulative_distributed) - Decimal(event.distributed_value)
        )

        tier = get_tier(tiers, holder.tier) if event.holder_type != HolderType.STAFF else None
        ceiling = ceiling_for(holder.base_investment, tier) if tier is not None else None
        holder.maxout_reached = (
            ceiling is not None and Decimal(holder.cumulative_distributed) >= ceiling
        )

        if event.tier_before and holder.tier != event.tier_after:
            await log_action(
                db,
                user_id=user_id,
                action=AuditAction.TIER_CHANGED,
                target_type=event.holder_type.value,
                target_id=holder.id,
                action_metadata={"from": event.tier_after, "to": holder.tier, "event_id": event.id},
            )

    await log_action(
        db,
        user_id=user_id,
        action=AuditAction.CONTRIBUTION_REJECTED,
        target_type="contribution",
        target_id=event.id,
        action_metadata={"amount": str(event.amount), "reason": reason},
    )
    logger.info(f"Contribution {event.id} rejected by user {user_id}")
    return event
