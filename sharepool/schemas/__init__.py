"""Pydantic schemas for request/response validation."""

from sharepool.schemas.auth import LoginRequest, LoginResponse, OperatorResponse
from sharepool.schemas.contribution import (
    ContributionCreate,
    ContributionEventResponse,
    ContributionListResponse,
    ContributionResultResponse,
    RejectRequest,
    WithdrawalCreate,
    WithdrawalQuoteRequest,
    WithdrawalQuoteResponse,
)
from sharepool.schemas.distribution import (
    DistributionResponse,
    PaymentBatchResponse,
    PeriodResponse,
    ProcessResultResponse,
    QuarterPreviewResponse,
    QuarterProcessRequest,
)
from sharepool.schemas.holder import (
    BranchCreate,
    BranchResponse,
    EntityListResponse,
    EntityResponse,
    StaffCreate,
    StaffResponse,
)
from sharepool.schemas.kpi import KpiResponse, KpiSubmit
from sharepool.schemas.ledger import LedgerEntryCreate, LedgerEntryResponse
from sharepool.schemas.referral import ReferralCreate, ReferralPayment, ReferralResponse
from sharepool.schemas.tier import TierResponse, TierUpdate

__all__ = [
    # Auth
    "LoginRequest",
    "LoginResponse",
    # Contributions
    "ContributionCreate",
    "ContributionEventResponse",
    "ContributionListResponse",
    "ContributionResultResponse",
    "RejectRequest",
    "WithdrawalCreate",
    "WithdrawalQuoteRequest",
    "WithdrawalQuoteResponse",
    # Distributions
    "QuarterProcessRequest",
    "PeriodResponse",
    "DistributionResponse",
    "ProcessResultResponse",
    "QuarterPreviewResponse",
    "PaymentBatchResponse",
    # Holders
    "EntityResponse",
    "EntityListResponse",
    "StaffCreate",
    "StaffResponse",
    "BranchCreate",
    "BranchResponse",
    # KPI
    "KpiSubmit",
    "KpiResponse",
    # Ledger
    "LedgerEntryCreate",
    "LedgerEntryResponse",
    # Referral
    "ReferralCreate",
    "ReferralPayment",
    "ReferralResponse",
    # Tiers
    "TierResponse",
    "TierUpdate",
]
