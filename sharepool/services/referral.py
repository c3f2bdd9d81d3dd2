"""
Referral codes and commissions.

A referrer earns a commission on the first approved capital
contribution of the member they referred. The commission is an effort
contribution for the referrer and goes through the same calculator and
Maxout Guard as any other contribution.
"""

import logging
import secrets
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sharepool.models import (
    AuditAction,
    ContributionEvent,
    ContributionKind,
    ContributionType,
    Entity,
    HolderType,
    Referral,
    ReferralStatus,
)
from sharepool.services.contribution import apply_contribution, validate_amount
from sharepool.services.errors import InvalidAmount, InvalidTransition, NotFound
from sharepool.services.rules import BusinessRules, resolve_rules
from sharepool.services.tiers import load_tier_table
from sharepool.utils.audit import log_action
from sharepool.utils.money import truncate_amount

logger = logging.getLogger(__name__)


def generate_referral_code(entity_code: str) -> str:
    """REF-<member code>-<random suffix>."""
    return f"REF-{entity_code}-{secrets.token_hex(3).upper()}"


async def create_referral(
    db: AsyncSession,
    referrer_code: str,
    rules: Optional[BusinessRules] = None,
) -> Referral:
    """Issue a new referral code for a member."""
    rules = resolve_rules(rules)
    result = await db.execute(select(Entity).where(Entity.code == referrer_code))
    referrer = result.scalar_one_or_none()
    if referrer is None:
        raise NotFound(f"Entity '{referrer_code}' not found")

    referral = Referral(
        referrer_id=referrer.id,
        referral_code=generate_referral_code(referrer.code),
        commission_rate=rules.referral_commission_rate,
        contribution_value=Decimal("0"),
        commission_amount=Decimal("0"),
        commission_paid=Decimal("0"),
        status=ReferralStatus.PENDING,
    )
    db.add(referral)
    await db.flush()
    logger.info(f"Issued referral code {referral.referral_code}")
    return referral


async def award_referral_commission(
    db: AsyncSession,
    referred: Entity,
    contribution: ContributionEvent,
    user_id: Optional[int] = None,
    rules: Optional[BusinessRules] = None,
) -> Optional[ContributionEvent]:
    """
    Pay the referrer's commission for an approved capital contribution.

    Only the first approved contribution counts; later calls find no
    pending referral and return None.
    """
    rules = resolve_rules(rules)
    result = await db.execute(
        select(Referral)
        .where(
            Referral.referred_entity_id == referred.id,
            Referral.status == ReferralStatus.PENDING,
        )
        .with_for_update()
    )
    referral = result.scalar_one_or_none()
    if referral is None:
        return None

    commission = truncate_amount(Decimal(contribution.amount) * Decimal(referral.commission_rate))
    referral.contribution_value = contribution.amount
    referral.commission_amount = commission
    referral.first_contribution_id = contribution.id
    referral.status = ReferralStatus.COMPLETED

    if commission <= 0:
        return None

    locked = await db.execute(
        select(Entity).where(Entity.id == referral.referrer_id).with_for_update()
    )
    referrer = locked.scalar_one()
    tiers = await load_tier_table(db)
    event, calc = await apply_contribution(
        db,
        referrer,
        HolderType.ENTITY,
        commission,
        ContributionKind.EFFORT,
        ContributionType.REFERRAL_COMMISSION,
        tiers,
        description=f"Referral commission for {referred.code}",
        user_id=user_id,
        rules=rules,
    )

    await log_action(
        db,
        user_id=user_id,
        action=AuditAction.REFERRAL_COMMISSION,
        target_type="referral",
        target_id=referral.id,
        action_metadata={
            "referrer": referrer.code,
            "referred": referred.code,
            "commission": str(commission),
            "event_id": event.id,
            "maxout_reached": calc.maxout_reached,
        },
    )
    logger.info(f"Referral {referral.referral_code}: commission {commission} to {referrer.code}")
    return event


async def mark_commission_paid(
    db: AsyncSession,
    referral_id: int,
    amount: Decimal,
    user_id: Optional[int] = None,
) -> Referral:
    """Record a (partial) commission payment. Overpayment is refused."""
    amount = validate_amount(amount)
    result = await db.execute(
        select(Referral).where(Referral.id == referral_id).with_for_update()
    )
    referral = result.scalar_one_or_none()
    if referral is None:
        raise NotFound(f"Referral {referral_id} not found")
    if referral.status != ReferralStatus.COMPLETED:
        raise InvalidTransition(
            f"Referral {referral_id} is {referral.status.value}, no commission is outstanding"
        )

    paid = Decimal(referral.commission_paid) + amount
    if paid > Decimal(referral.commission_amount):
        raise InvalidAmount(
            f"Payment {amount} exceeds outstanding commission "
            f"{Decimal(referral.commission_amount) - Decimal(referral.commission_paid)}"
        )

    referral.commission_paid = paid
    if paid == Decimal(referral.commission_amount):
        referral.status = ReferralStatus.PAID
        referral.paid_at = datetime.now(timezone.utc)

    await log_action(
        db,
        user_id=user_id,
        action=AuditAction.REFERRAL_COMMISSION,
        target_type="referral",
        target_id=referral.id,
        action_metadata={"paid": str(amount), "total_paid": str(paid)},
    )
    return referral
