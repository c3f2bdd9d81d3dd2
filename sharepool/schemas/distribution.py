"""Quarterly profit sharing schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from sharepool.models.holder import HolderType
from sharepool.models.profit import DistributionType, PaymentStatus, PeriodStatus
from sharepool.services.quarters import QUARTER_PATTERN


class QuarterProcessRequest(BaseModel):
    """Trigger quarterly processing."""

    period: Literal["quarter"] = "quarter"
    period_value: str = Field(..., pattern=QUARTER_PATTERN)
    force_reprocess: bool = False


class DistributionResponse(BaseModel):
    id: int
    holder_type: HolderType
    holder_id: int
    holder_name: Optional[str]
    distribution_type: DistributionType
    shares_owned: Decimal
    raw_amount: Decimal
    distribution_amount: Decimal
    token_amount: Decimal
    maxout_applied: bool
    payment_status: PaymentStatus
    paid_at: Optional[datetime]

    model_config = {"from_attributes": True}


class PeriodResponse(BaseModel):
    """One processing run and its distributions."""

    id: int
    period: str
    period_value: str
    total_revenue: Decimal
    total_expenses: Decimal
    net_profit: Decimal
    distribution_pool: Decimal
    capital_pool: Decimal
    labor_pool: Decimal
    total_shares: Decimal
    capital_shares: Decimal
    labor_shares: Decimal
    profit_per_share: Decimal
    capital_profit_per_share: Decimal
    labor_profit_per_share: Decimal
    total_distributed: Decimal
    undistributed_amount: Decimal
    status: PeriodStatus
    processed_at: Optional[datetime]
    cancelled_at: Optional[datetime]
    distributions: List[DistributionResponse] = []

    model_config = {"from_attributes": True}


class ProcessResultResponse(BaseModel):
    """Result of a processing request. already_processed marks the idempotent no-op."""

    already_processed: bool
    message: str
    period: Optional[PeriodResponse]


class QuarterPreviewResponse(BaseModel):
    period_value: str
    start_date: date
    end_date: date
    total_revenue: Decimal
    total_expenses: Decimal
    net_profit: Decimal
    distribution_pool: Decimal
    capital_pool: Decimal
    labor_pool: Decimal
    already_processed: bool
    can_process: bool


class PaymentBatchResponse(BaseModel):
    period_value: str
    paid: int
    total_amount: Decimal
