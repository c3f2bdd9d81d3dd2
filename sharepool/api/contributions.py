"""Contribution recording and approval endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from sharepool.api.errors import http_error
from sharepool.auth.dependencies import require_finance
from sharepool.db import get_db
from sharepool.models import ApprovalStatus, ContributionEvent, ContributionType, HolderType, User
from sharepool.schemas.contribution import (
    ContributionCreate,
    ContributionEventResponse,
    ContributionListResponse,
    ContributionResultResponse,
    RejectRequest,
)
from sharepool.services.approval import approve_contribution, reject_contribution
from sharepool.services.contribution import record_contribution
from sharepool.services.errors import EngineError

router = APIRouter(prefix="/contributions", tags=["Contributions"])


@router.post("", response_model=ContributionResultResponse)
async def create_contribution(
    data: ContributionCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_finance),
):
    """Record a member contribution. The event stays pending until approved."""
    try:
        event, result = await record_contribution(
            db,
            data.entity_code,
            data.amount,
            data.kind,
            event_type=ContributionType(data.event_type) if data.event_type else None,
            name=data.name,
            referral_code=data.referral_code,
            description=data.description,
            user_id=current_user.id,
        )
    except EngineError as e:
        raise http_error(e)

    return ContributionResultResponse(
        event_id=event.id,
        entity_code=data.entity_code,
        shares=result.shares,
        tokens=result.tokens,
        tier=result.tier,
        previous_tier=result.previous_tier,
        tier_changed=result.tier_changed,
        maxout_reached=result.maxout_reached,
        status=event.status,
    )


@router.get("", response_model=ContributionListResponse)
async def list_contributions(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_finance),
    status_filter: Optional[ApprovalStatus] = Query(None, alias="status"),
    holder_type: Optional[HolderType] = Query(None),
    holder_id: Optional[int] = Query(None),
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
):
    """List contribution events, newest first."""
    query = select(ContributionEvent)
    if status_filter:
        query = query.where(ContributionEvent.status == status_filter)
    if holder_type:
        query = query.where(ContributionEvent.holder_type == holder_type)
    if holder_id is not None:
        query = query.where(ContributionEvent.holder_id == holder_id)

    total = await db.scalar(select(func.count()).select_from(query.subquery()))

    query = query.order_by(ContributionEvent.id.desc())
    query = query.offset((page - 1) * per_page).limit(per_page)
    result = await db.execute(query)

    return ContributionListResponse(
        items=[ContributionEventResponse.model_validate(e) for e in result.scalars().all()],
        total=total or 0,
    )


@router.post("/{event_id}/approve", response_model=ContributionEventResponse)
async def approve(
    event_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_finance),
):
    """Approve a pending contribution or withdrawal."""
    try:
        event = await approve_contribution(db, event_id, user_id=current_user.id)
    except EngineError as e:
        raise http_error(e)
    return ContributionEventResponse.model_validate(event)


@router.post("/{event_id}/reject", response_model=ContributionEventResponse)
async def reject(
    event_id: int,
    data: RejectRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_finance),
):
    """Reject a pending event and reverse its balance changes."""
    try:
        event = await reject_contribution(db, event_id, reason=data.reason, user_id=current_user.id)
    except EngineError as e:
        raise http_error(e)
    return ContributionEventResponse.model_validate(event)
