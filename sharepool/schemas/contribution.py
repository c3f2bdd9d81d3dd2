"""Contribution and withdrawal schemas."""

from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from sharepool.models.contribution import ApprovalStatus, ContributionKind, ContributionType
from sharepool.models.holder import HolderType


class ContributionCreate(BaseModel):
    """Record a member contribution."""

    entity_code: str = Field(..., min_length=1, max_length=64)
    amount: Decimal = Field(..., gt=0)
    kind: ContributionKind
    event_type: Optional[
        Literal["deposit", "investment", "card_purchase", "asset_contribution", "referral_commission"]
    ] = None
    name: Optional[str] = Field(None, max_length=200)
    referral_code: Optional[str] = Field(None, max_length=64)
    description: Optional[str] = Field(None, max_length=500)


class ContributionResultResponse(BaseModel):
    """What a contribution produced."""

    event_id: int
    entity_code: str
    shares: Decimal
    tokens: Decimal
    tier: str
    previous_tier: Optional[str]
    tier_changed: bool
    maxout_reached: bool
    status: ApprovalStatus


class ContributionEventResponse(BaseModel):
    """Stored contribution event."""

    id: int
    holder_type: HolderType
    holder_id: int
    event_type: ContributionType
    kind: Optional[ContributionKind]
    amount: Decimal
    token_amount: Decimal
    shares_granted: Decimal
    distributed_value: Decimal
    tax_amount: Decimal
    tier_before: Optional[str]
    tier_after: Optional[str]
    maxout_reached: bool
    status: ApprovalStatus
    period_value: Optional[str]
    description: Optional[str]
    approved_by_id: Optional[int]
    approved_at: Optional[datetime]
    created_at: datetime

    model_config = {"from_attributes": True}


class ContributionListResponse(BaseModel):
    """Paginated list of contribution events."""

    items: List[ContributionEventResponse]
    total: int


class RejectRequest(BaseModel):
    """Reason for rejecting a pending event."""

    reason: Optional[str] = Field(None, max_length=500)


class WithdrawalQuoteRequest(BaseModel):
    amount: Decimal = Field(..., gt=0)


class WithdrawalQuoteResponse(BaseModel):
    """Tax breakdown of a withdrawal."""

    amount: Decimal
    tax: Decimal
    net_amount: Decimal


class WithdrawalCreate(BaseModel):
    """Withdraw from a member's paid-out balance."""

    entity_code: str = Field(..., min_length=1, max_length=64)
    amount: Decimal = Field(..., gt=0)
