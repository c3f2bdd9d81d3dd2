"""
Audit trail: one row per engine mutation or operator action.

Tier changes, maxout flags and committed quarters are all reconstructible
from this table keyed by (target_type, target_id).
"""

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, ForeignKey, Index, Integer, JSON, String, func
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from sharepool.models.base import Base

if TYPE_CHECKING:
    from sharepool.models.user import User


class AuditAction(str, Enum):
    LOGIN = "login"
    LOGOUT = "logout"
    CONTRIBUTION_RECORDED = "contribution_recorded"
    CONTRIBUTION_APPROVED = "contribution_approved"
    CONTRIBUTION_REJECTED = "contribution_rejected"
    TIER_CHANGED = "tier_changed"
    MAXOUT_REACHED = "maxout_reached"
    KPI_CALCULATED = "kpi_calculated"
    DISTRIBUTION_COMMITTED = "distribution_committed"
    PERIOD_CANCELLED = "period_cancelled"
    DISTRIBUTION_PAID = "distribution_paid"
    WITHDRAWAL_REQUESTED = "withdrawal_requested"
    REFERRAL_COMMISSION = "referral_commission"
    TIER_CONFIG_UPDATED = "tier_config_updated"
    INVESTMENT_REBASED = "investment_rebased"


class AuditLog(Base):
    """
    Append-only audit trail.

    user_id is empty for mutations the engine performs on its own
    (tier changes, maxout flags raised during a batch).
    """

    __tablename__ = "audit_logs"
    __table_args__ = (
        Index("ix_audit_logs_target", "target_type", "target_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id"),
        nullable=True,
        index=True,
    )
    action: Mapped[AuditAction] = mapped_column(
        SQLAlchemyEnum(
            AuditAction,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
        index=True,
    )
    target_type: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
        comment="Type of record affected (entity, staff, branch, period, etc)",
    )
    target_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        comment="ID of the affected record",
    )
    action_metadata: Mapped[Optional[dict]] = mapped_column(
        JSON,
        nullable=True,
        comment="Amounts and tier names as strings",
    )
    ip_address: Mapped[Optional[str]] = mapped_column(
        String(45),
        nullable=True,
        comment="IPv4 or IPv6 address",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        index=True,
    )

    user: Mapped[Optional["User"]] = relationship(
        "User",
        back_populates="audit_logs",
    )

    def __repr__(self) -> str:
        return f"<AuditLog(id={self.id}, action={self.action}, target={self.target_type}:{self.target_id})>"
