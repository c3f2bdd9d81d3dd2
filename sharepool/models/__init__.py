"""
Database models for Sharepool.

All models are exported here for convenient imports:
    from sharepool.models import Entity, ProfitSharingPeriod, etc.
"""

from sharepool.models.audit import AuditAction, AuditLog
from sharepool.models.base import AMOUNT, Base, TimestampMixin
from sharepool.models.contribution import (
    CAPITAL_KINDS,
    ApprovalStatus,
    ContributionEvent,
    ContributionKind,
    ContributionType,
)
from sharepool.models.holder import Branch, Entity, HolderType, StaffMember
from sharepool.models.kpi import KpiPeriodRecord, KpiState
from sharepool.models.ledger import LedgerEntry, LedgerEntryType
from sharepool.models.profit import (
    DistributionType,
    PaymentStatus,
    PeriodStatus,
    ProfitDistributionRecord,
    ProfitSharingPeriod,
)
from sharepool.models.referral import Referral, ReferralStatus
from sharepool.models.tier import BusinessTierConfig
from sharepool.models.user import User, UserRole

__all__ = [
    # Base
    "AMOUNT",
    "Base",
    "TimestampMixin",
    # User
    "User",
    "UserRole",
    # Audit
    "AuditLog",
    "AuditAction",
    # Holders
    "Entity",
    "StaffMember",
    "Branch",
    "HolderType",
    # Contributions
    "ContributionEvent",
    "ContributionType",
    "ContributionKind",
    "ApprovalStatus",
    "CAPITAL_KINDS",
    # KPI
    "KpiPeriodRecord",
    "KpiState",
    # Profit sharing
    "ProfitSharingPeriod",
    "ProfitDistributionRecord",
    "PeriodStatus",
    "DistributionType",
    "PaymentStatus",
    # Ledger
    "LedgerEntry",
    "LedgerEntryType",
    # Referral
    "Referral",
    "ReferralStatus",
    # Tiers
    "BusinessTierConfig",
]
