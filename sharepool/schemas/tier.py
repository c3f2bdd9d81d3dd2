"""Tier configuration schemas."""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class TierResponse(BaseModel):
    id: int
    tier_name: str
    min_investment: Decimal
    token_multiplier: Decimal
    maxout_multiplier: Optional[Decimal]
    shares_per_unit: Decimal
    base_shares: int
    unlimited_shares: bool
    kpi_required: bool
    is_active: bool

    model_config = {"from_attributes": True}


class TierUpdate(BaseModel):
    """Partial tier update (admin only)."""

    min_investment: Optional[Decimal] = Field(None, ge=0)
    token_multiplier: Optional[Decimal] = Field(None, gt=0)
    maxout_multiplier: Optional[Decimal] = Field(None, gt=0)
    shares_per_unit: Optional[Decimal] = Field(None, ge=0)
    base_shares: Optional[int] = Field(None, ge=0)
    unlimited_shares: Optional[bool] = None
    kpi_required: Optional[bool] = None
    is_active: Optional[bool] = None
