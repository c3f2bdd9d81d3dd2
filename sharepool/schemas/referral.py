"""Referral schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from sharepool.models.referral import ReferralStatus


class ReferralCreate(BaseModel):
    referrer_code: str = Field(..., min_length=1, max_length=64)


class ReferralPayment(BaseModel):
    amount: Decimal = Field(..., gt=0)


class ReferralResponse(BaseModel):
    id: int
    referrer_id: int
    referred_entity_id: Optional[int]
    referral_code: str
    commission_rate: Decimal
    contribution_value: Decimal
    commission_amount: Decimal
    commission_paid: Decimal
    status: ReferralStatus
    paid_at: Optional[datetime]

    model_config = {"from_attributes": True}
