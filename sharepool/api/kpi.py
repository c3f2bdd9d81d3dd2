"""KPI submission endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sharepool.api.errors import http_error
from sharepool.auth.dependencies import require_finance
from sharepool.db import get_db
from sharepool.models import HolderType, KpiPeriodRecord, User
from sharepool.schemas.kpi import KpiResponse, KpiSubmit
from sharepool.services.errors import EngineError
from sharepool.services.kpi import KpiMetrics, calculate_kpi

router = APIRouter(prefix="/kpi", tags=["KPI"])


@router.post("", response_model=KpiResponse)
async def submit_kpi(
    data: KpiSubmit,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_finance),
):
    """Score a quarter. Records already processed come back unchanged."""
    metrics = KpiMetrics(
        card_sales=data.card_sales,
        customer_retention=data.customer_retention,
        revenue=data.revenue,
        target_revenue=data.target_revenue,
    )
    try:
        record = await calculate_kpi(
            db,
            HolderType(data.holder_type),
            data.holder_code,
            data.period_value,
            metrics,
            user_id=current_user.id,
        )
    except EngineError as e:
        raise http_error(e)
    return KpiResponse.model_validate(record)


@router.get("", response_model=list[KpiResponse])
async def list_kpi(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_finance),
    period_value: Optional[str] = Query(None),
    holder_type: Optional[HolderType] = Query(None),
):
    query = select(KpiPeriodRecord)
    if period_value:
        query = query.where(KpiPeriodRecord.period_value == period_value)
    if holder_type:
        query = query.where(KpiPeriodRecord.holder_type == holder_type)
    result = await db.execute(query.order_by(KpiPeriodRecord.id))
    return [KpiResponse.model_validate(r) for r in result.scalars().all()]
