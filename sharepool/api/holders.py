"""Member, staff and branch endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from sharepool.api.errors import http_error
from sharepool.auth.dependencies import require_admin, require_finance
from sharepool.db import get_db
from sharepool.models import Branch, Entity, HolderType, StaffMember, User
from sharepool.schemas.holder import (
    BranchCreate,
    BranchResponse,
    EntityListResponse,
    EntityResponse,
    StaffCreate,
    StaffResponse,
)
from sharepool.services.contribution import rebase_investment
from sharepool.services.errors import EngineError
from sharepool.services.holders import create_staff_member, get_holder_by_code, open_branch

router = APIRouter(tags=["Holders"])


@router.get("/entities", response_model=EntityListResponse)
async def list_entities(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_finance),
    tier: Optional[str] = Query(None),
    maxout_reached: Optional[bool] = Query(None),
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
):
    """List members."""
    query = select(Entity)
    if tier:
        query = query.where(Entity.tier == tier)
    if maxout_reached is not None:
        query = query.where(Entity.maxout_reached == maxout_reached)

    total = await db.scalar(select(func.count()).select_from(query.subquery()))
    query = query.order_by(Entity.id).offset((page - 1) * per_page).limit(per_page)
    result = await db.execute(query)

    return EntityListResponse(
        items=[EntityResponse.model_validate(e) for e in result.scalars().all()],
        total=total or 0,
    )


@router.get("/entities/{code}", response_model=EntityResponse)
async def get_entity(
    code: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_finance),
):
    try:
        entity = await get_holder_by_code(db, HolderType.ENTITY, code)
    except EngineError as e:
        raise http_error(e)
    return EntityResponse.model_validate(entity)


@router.post("/entities/{code}/rebase", response_model=EntityResponse)
async def rebase_entity(
    code: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Reset the maxout base to the member's cumulative capital (admin only)."""
    try:
        entity = await rebase_investment(db, code, user_id=current_user.id)
    except EngineError as e:
        raise http_error(e)
    return EntityResponse.model_validate(entity)


@router.post("/staff", response_model=StaffResponse)
async def create_staff(
    data: StaffCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_finance),
):
    try:
        staff = await create_staff_member(
            db, data.code, data.name, position=data.position, branch_code=data.branch_code,
        )
    except EngineError as e:
        raise http_error(e)
    return StaffResponse.model_validate(staff)


@router.get("/staff", response_model=list[StaffResponse])
async def list_staff(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_finance),
):
    result = await db.execute(select(StaffMember).order_by(StaffMember.id))
    return [StaffResponse.model_validate(s) for s in result.scalars().all()]


@router.post("/branches", response_model=BranchResponse)
async def create_branch(
    data: BranchCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_finance),
):
    """Open a branch; the franchise fee event stays pending until approved."""
    try:
        branch, _, _ = await open_branch(
            db, data.code, data.name, data.franchise_fee, user_id=current_user.id,
        )
    except EngineError as e:
        raise http_error(e)
    return BranchResponse.model_validate(branch)


@router.get("/branches", response_model=list[BranchResponse])
async def list_branches(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_finance),
):
    result = await db.execute(select(Branch).order_by(Branch.id))
    return [BranchResponse.model_validate(b) for b in result.scalars().all()]
