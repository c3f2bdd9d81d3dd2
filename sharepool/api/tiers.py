"""Tier configuration endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sharepool.auth.dependencies import require_admin, require_finance
from sharepool.db import get_db
from sharepool.models import AuditAction, BusinessTierConfig, User
from sharepool.schemas.tier import TierResponse, TierUpdate
from sharepool.utils.audit import log_action

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tiers", tags=["Tiers"])


@router.get("", response_model=list[TierResponse])
async def list_tiers(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_finance),
):
    """Tier table, richest first."""
    result = await db.execute(
        select(BusinessTierConfig).order_by(BusinessTierConfig.min_investment.desc())
    )
    return [TierResponse.model_validate(t) for t in result.scalars().all()]


@router.patch("/{tier_name}", response_model=TierResponse)
async def update_tier(
    tier_name: str,
    data: TierUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Change a tier's configuration (admin only)."""
    result = await db.execute(
        select(BusinessTierConfig).where(BusinessTierConfig.tier_name == tier_name)
    )
    tier = result.scalar_one_or_none()
    if not tier:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Tier '{tier_name}' not found",
        )

    changes = data.model_dump(exclude_unset=True)
    for field, value in changes.items():
        setattr(tier, field, value)

    await log_action(
        db,
        user_id=current_user.id,
        action=AuditAction.TIER_CONFIG_UPDATED,
        target_type="tier",
        target_id=tier.id,
        action_metadata={k: str(v) for k, v in changes.items()},
    )
    await db.flush()
    logger.info(f"Tier {tier_name} updated by {current_user.username}: {changes}")
    return TierResponse.model_validate(tier)
