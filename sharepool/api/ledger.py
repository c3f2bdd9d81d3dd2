"""Income and expense ledger endpoints."""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from sharepool.api.errors import http_error
from sharepool.auth.dependencies import require_finance
from sharepool.db import get_db
from sharepool.models import LedgerEntry, User
from sharepool.schemas.ledger import LedgerEntryCreate, LedgerEntryResponse
from sharepool.services.errors import EngineError
from sharepool.services.ledger import record_ledger_entry

router = APIRouter(prefix="/ledger", tags=["Ledger"])


@router.post("", response_model=LedgerEntryResponse)
async def create_entry(
    data: LedgerEntryCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_finance),
):
    try:
        entry = await record_ledger_entry(
            db,
            data.entry_type,
            data.amount,
            data.description,
            occurred_at=data.occurred_at,
            branch_code=data.branch_code,
            user_id=current_user.id,
        )
    except EngineError as e:
        raise http_error(e)
    return LedgerEntryResponse.model_validate(entry)


@router.get("")
async def get_ledger(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_finance),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
):
    """Ledger entries, newest first."""
    query = select(LedgerEntry)
    if start_date:
        query = query.where(LedgerEntry.occurred_at >= start_date)
    if end_date:
        query = query.where(LedgerEntry.occurred_at <= end_date)

    total = await db.scalar(select(func.count()).select_from(query.subquery()))

    query = query.order_by(LedgerEntry.occurred_at.desc())
    query = query.offset((page - 1) * per_page).limit(per_page)
    result = await db.execute(query)

    return {
        "items": [LedgerEntryResponse.model_validate(e) for e in result.scalars().all()],
        "total": total or 0,
        "page": page,
        "per_page": per_page,
    }
