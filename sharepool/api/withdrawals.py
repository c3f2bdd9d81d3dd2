"""Withdrawal endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from sharepool.api.errors import http_error
from sharepool.auth.dependencies import require_finance
from sharepool.db import get_db
from sharepool.models import User
from sharepool.schemas.contribution import (
    ContributionEventResponse,
    WithdrawalCreate,
    WithdrawalQuoteRequest,
    WithdrawalQuoteResponse,
)
from sharepool.services.errors import EngineError
from sharepool.services.withdrawal import calculate_withdrawal, request_withdrawal

router = APIRouter(prefix="/withdrawals", tags=["Withdrawals"])


@router.post("/quote", response_model=WithdrawalQuoteResponse)
async def quote(
    data: WithdrawalQuoteRequest,
    current_user: User = Depends(require_finance),
):
    """Tax and net amount for a withdrawal."""
    try:
        result = calculate_withdrawal(data.amount)
    except EngineError as e:
        raise http_error(e)
    return WithdrawalQuoteResponse(amount=result.amount, tax=result.tax, net_amount=result.net_amount)


@router.post("", response_model=ContributionEventResponse)
async def create_withdrawal(
    data: WithdrawalCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_finance),
):
    """Debit the member's withdrawable balance and queue the withdrawal for approval."""
    try:
        event = await request_withdrawal(db, data.entity_code, data.amount, user_id=current_user.id)
    except EngineError as e:
        raise http_error(e)
    return ContributionEventResponse.model_validate(event)
