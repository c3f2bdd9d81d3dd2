"""Ledger schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from sharepool.models.ledger import LedgerEntryType


class LedgerEntryCreate(BaseModel):
    entry_type: LedgerEntryType
    amount: Decimal = Field(..., gt=0)
    description: str = Field(..., min_length=1, max_length=500)
    occurred_at: Optional[datetime] = None
    branch_code: Optional[str] = Field(None, max_length=64)


class LedgerEntryResponse(BaseModel):
    id: int
    entry_type: LedgerEntryType
    amount: Decimal
    description: str
    branch_id: Optional[int]
    occurred_at: datetime

    model_config = {"from_attributes": True}
