"""KPI schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, Field

from sharepool.models.holder import HolderType
from sharepool.models.kpi import KpiState
from sharepool.services.quarters import QUARTER_PATTERN


class KpiSubmit(BaseModel):
    """Quarterly metrics for a staff member or branch."""

    holder_type: Literal["staff", "branch"]
    holder_code: str = Field(..., min_length=1, max_length=64)
    period_value: str = Field(..., pattern=QUARTER_PATTERN)
    card_sales: int = Field(..., ge=0)
    customer_retention: Decimal = Field(..., ge=0)
    revenue: Decimal = Field(..., ge=0)
    target_revenue: Decimal = Field(..., ge=0)


class KpiResponse(BaseModel):
    """Scored KPI record."""

    id: int
    holder_type: HolderType
    holder_id: int
    period_value: str
    card_sales: int
    customer_retention: Decimal
    revenue: Decimal
    target_revenue: Decimal
    total_points: Decimal
    score: Decimal
    state: KpiState
    is_eligible: bool
    slots_earned: int
    shares_awarded: Decimal
    token_earned: Decimal
    is_processed: bool
    processed_at: Optional[datetime]

    model_config = {"from_attributes": True}
