"""Quarterly profit distribution endpoints."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from sharepool.api.errors import http_error
from sharepool.auth.dependencies import require_finance
from sharepool.db import get_db
from sharepool.models import User
from sharepool.schemas.distribution import (
    DistributionResponse,
    PaymentBatchResponse,
    PeriodResponse,
    ProcessResultResponse,
    QuarterPreviewResponse,
    QuarterProcessRequest,
)
from sharepool.services.distribution import (
    get_live_period,
    mark_distribution_paid,
    process_all_payments,
    process_quarterly_distribution,
)
from sharepool.services.errors import AlreadyProcessed, EngineError, NotFound
from sharepool.services.ledger import preview_quarter
from sharepool.services.quarters import parse_quarter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/distributions", tags=["Distributions"])


@router.post("/process", response_model=ProcessResultResponse)
async def process_quarter(
    data: QuarterProcessRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_finance),
):
    """
    Run quarterly profit distribution.

    A quarter that already has a live run is a no-op: the existing run is
    returned with already_processed set.
    """
    try:
        run = await process_quarterly_distribution(
            db,
            data.period_value,
            force_reprocess=data.force_reprocess,
            period=data.period,
            user_id=current_user.id,
        )
    except AlreadyProcessed as e:
        logger.info(f"Processing {data.period_value} skipped: {e}")
        return ProcessResultResponse(
            already_processed=True,
            message=str(e),
            period=PeriodResponse.model_validate(e.existing) if e.existing is not None else None,
        )
    except EngineError as e:
        raise http_error(e)

    return ProcessResultResponse(
        already_processed=False,
        message=f"{data.period_value} processed",
        period=PeriodResponse.model_validate(run),
    )


@router.get("/preview/{period_value}", response_model=QuarterPreviewResponse)
async def preview(
    period_value: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_finance),
):
    """Revenue, expenses and pool a run would use. Read only."""
    try:
        result = await preview_quarter(db, period_value)
    except EngineError as e:
        raise http_error(e)
    return QuarterPreviewResponse(
        period_value=result.period_value,
        start_date=result.start_date,
        end_date=result.end_date,
        total_revenue=result.total_revenue,
        total_expenses=result.total_expenses,
        net_profit=result.net_profit,
        distribution_pool=result.distribution_pool,
        capital_pool=result.capital_pool,
        labor_pool=result.labor_pool,
        already_processed=result.already_processed,
        can_process=result.can_process,
    )


@router.get("/periods/{period_value}", response_model=PeriodResponse)
async def get_period(
    period_value: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_finance),
):
    """The live run for a quarter with its distributions."""
    try:
        parse_quarter(period_value)
        run = await get_live_period(db, period_value)
        if run is None:
            raise NotFound(f"{period_value} has not been processed")
    except EngineError as e:
        raise http_error(e)
    return PeriodResponse.model_validate(run)


@router.post("/periods/{period_value}/pay-all", response_model=PaymentBatchResponse)
async def pay_all(
    period_value: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_finance),
):
    """Mark every pending distribution of the quarter as paid."""
    try:
        count, total = await process_all_payments(db, period_value, user_id=current_user.id)
    except EngineError as e:
        raise http_error(e)
    return PaymentBatchResponse(period_value=period_value, paid=count, total_amount=total)


@router.post("/records/{distribution_id}/pay", response_model=DistributionResponse)
async def pay_distribution(
    distribution_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_finance),
):
    try:
        dist = await mark_distribution_paid(db, distribution_id, user_id=current_user.id)
    except EngineError as e:
        raise http_error(e)
    return DistributionResponse.model_validate(dist)
