"""
Holder management: staff members and franchise branches.

Members (entities) are created by their first contribution, see
services.contribution.
"""

import logging
from decimal import Decimal
from typing import Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sharepool.models import (
    AuditAction,
    Branch,
    ContributionEvent,
    ContributionKind,
    ContributionType,
    Entity,
    HolderType,
    StaffMember,
)
from sharepool.services.contribution import ContributionResult, apply_contribution, validate_amount
from sharepool.services.errors import InvalidTransition, NotFound
from sharepool.services.rules import BusinessRules, resolve_rules
from sharepool.services.tiers import BRANCH_TIER, load_tier_table
from sharepool.utils.audit import log_action

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

HOLDER_MODELS = {
    HolderType.ENTITY: Entity,
    HolderType.STAFF: StaffMember,
    HolderType.BRANCH: Branch,
}


async def lock_holder(db: AsyncSession, holder_type: HolderType, holder_id: int):
    """Load any holder by id with a row lock."""
    model = HOLDER_MODELS[holder_type]
    result = await db.execute(
        select(model).where(model.id == holder_id).with_for_update()
    )
    holder = result.scalar_one_or_none()
    if holder is None:
        raise NotFound(f"{holder_type.value} {holder_id} not found")
    return holder


async def get_holder_by_code(db: AsyncSession, holder_type: HolderType, code: str):
    model = HOLDER_MODELS[holder_type]
    result = await db.execute(select(model).where(model.code == code))
    holder = result.scalar_one_or_none()
    if holder is None:
        raise NotFound(f"{holder_type.value} '{code}' not found")
    return holder


async def create_staff_member(
    db: AsyncSession,
    code: str,
    name: str,
    position: Optional[str] = None,
    branch_code: Optional[str] = None,
) -> StaffMember:
    """Register a staff member with empty balances."""
    existing = await db.execute(select(StaffMember).where(StaffMember.code == code))
    if existing.scalar_one_or_none() is not None:
        raise InvalidTransition(f"Staff member '{code}' already exists")

    branch_id = None
    if branch_code:
        branch = await get_holder_by_code(db, HolderType.BRANCH, branch_code)
        branch_id = branch.id

    staff = StaffMember(
        code=code,
        name=name,
        position=position,
        branch_id=branch_id,
        shares=ZERO,
        equity_percentage=ZERO,
        token_balance=ZERO,
        base_investment=ZERO,
        cumulative_distributed=ZERO,
        maxout_reached=False,
        is_active=True,
    )
    db.add(staff)
    await db.flush()
    logger.info(f"Created staff member {code}")
    return staff


async def open_branch(
    db: AsyncSession,
    code: str,
    name: str,
    franchise_fee: Decimal,
    user_id: Optional[int] = None,
    rules: Optional[BusinessRules] = None,
) -> Tuple[Branch, ContributionEvent, ContributionResult]:
    """
    Open a franchise branch.

    The franchise fee runs through the contribution calculator pinned to
    the branch tier: the flat share grant, the initial token grant, and
    the fee becomes the branch's base investment.
    """
    rules = resolve_rules(rules)
    franchise_fee = validate_amount(franchise_fee)
    tiers = await load_tier_table(db)

    existing = await db.execute(select(Branch).where(Branch.code == code))
    if existing.scalar_one_or_none() is not None:
        raise InvalidTransition(f"Branch '{code}' already exists")

    branch = Branch(
        code=code,
        name=name,
        tier=BRANCH_TIER,
        shares=ZERO,
        kpi_score=ZERO,
        token_balance=ZERO,
        base_investment=ZERO,
        cumulative_distributed=ZERO,
        maxout_reached=False,
        is_active=True,
    )
    db.add(branch)
    await db.flush()

    event, result = await apply_contribution(
        db,
        branch,
        HolderType.BRANCH,
        franchise_fee,
        ContributionKind.CASH,
        ContributionType.FRANCHISE_FEE,
        tiers,
        tier_name=BRANCH_TIER,
        tokens_override=rules.branch_initial_tokens,
        description=f"Franchise fee for branch {code}",
        user_id=user_id,
        rules=rules,
    )

    await log_action(
        db,
        user_id=user_id,
        action=AuditAction.CONTRIBUTION_RECORDED,
        target_type="branch",
        target_id=branch.id,
        action_metadata={
            "event_id": event.id,
            "amount": str(franchise_fee),
            "shares": str(result.shares),
            "tokens": str(result.tokens),
        },
    )
    logger.info(f"Opened branch {code} with {result.shares} shares")
    return branch, event, result
