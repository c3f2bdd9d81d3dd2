"""Referral code and commission endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sharepool.api.errors import http_error
from sharepool.auth.dependencies import require_finance
from sharepool.db import get_db
from sharepool.models import Referral, User
from sharepool.schemas.referral import ReferralCreate, ReferralPayment, ReferralResponse
from sharepool.services.errors import EngineError
from sharepool.services.referral import create_referral, mark_commission_paid

router = APIRouter(prefix="/referrals", tags=["Referrals"])


@router.post("", response_model=ReferralResponse)
async def issue_referral(
    data: ReferralCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_finance),
):
    try:
        referral = await create_referral(db, data.referrer_code)
    except EngineError as e:
        raise http_error(e)
    return ReferralResponse.model_validate(referral)


@router.get("", response_model=list[ReferralResponse])
async def list_referrals(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_finance),
):
    result = await db.execute(select(Referral).order_by(Referral.id.desc()))
    return [ReferralResponse.model_validate(r) for r in result.scalars().all()]


@router.post("/{referral_id}/payments", response_model=ReferralResponse)
async def pay_commission(
    referral_id: int,
    data: ReferralPayment,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_finance),
):
    """Record a commission payment. Paying more than is owed is refused."""
    try:
        referral = await mark_commission_paid(db, referral_id, data.amount, user_id=current_user.id)
    except EngineError as e:
        raise http_error(e)
    return ReferralResponse.model_validate(referral)
