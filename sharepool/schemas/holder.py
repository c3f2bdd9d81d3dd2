"""Holder schemas: members, staff and branches."""

from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, computed_field

from sharepool.utils.money import format_currency


class EntityResponse(BaseModel):
    """Member balances."""

    id: int
    code: str
    name: Optional[str]
    tier: str
    cumulative_amount: Decimal
    capital_shares: Decimal
    labor_shares: Decimal
    token_balance: Decimal
    base_investment: Decimal
    cumulative_distributed: Decimal
    withdrawable_balance: Decimal
    maxout_reached: bool
    is_active: bool

    model_config = {"from_attributes": True}

    @computed_field
    @property
    def total_shares(self) -> Decimal:
        return self.capital_shares + self.labor_shares

    @computed_field
    @property
    def cumulative_distributed_display(self) -> str:
        return format_currency(self.cumulative_distributed)


class EntityListResponse(BaseModel):
    items: List[EntityResponse]
    total: int


class StaffCreate(BaseModel):
    """Register a staff member."""

    code: str = Field(..., min_length=1, max_length=64)
    name: str = Field(..., min_length=1, max_length=200)
    position: Optional[str] = Field(None, max_length=100)
    branch_code: Optional[str] = Field(None, max_length=64)


class StaffResponse(BaseModel):
    id: int
    code: str
    name: str
    position: Optional[str]
    branch_id: Optional[int]
    shares: Decimal
    equity_percentage: Decimal
    token_balance: Decimal
    cumulative_distributed: Decimal
    is_active: bool

    model_config = {"from_attributes": True}


class BranchCreate(BaseModel):
    """Open a franchise branch."""

    code: str = Field(..., min_length=1, max_length=64)
    name: str = Field(..., min_length=1, max_length=200)
    franchise_fee: Decimal = Field(..., gt=0)


class BranchResponse(BaseModel):
    id: int
    code: str
    name: str
    tier: str
    shares: Decimal
    kpi_score: Decimal
    token_balance: Decimal
    base_investment: Decimal
    cumulative_distributed: Decimal
    maxout_reached: bool
    is_active: bool

    model_config = {"from_attributes": True}
