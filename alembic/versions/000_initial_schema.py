"""Initial database schema

Revision ID: 000_initial_schema
Revises:
Create Date: 2026-10-18

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "000_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

AMOUNT = sa.Numeric(24, 6)

# Enum types are shared between tables, so they are created once up front
userrole = postgresql.ENUM("admin", "accountant", name="userrole", create_type=False)
auditaction = postgresql.ENUM(
    "login", "logout",
    "contribution_recorded", "contribution_approved", "contribution_rejected",
    "tier_changed", "maxout_reached", "kpi_calculated",
    "distribution_committed", "period_cancelled", "distribution_paid",
    "withdrawal_requested", "referral_commission",
    "tier_config_updated", "investment_rebased",
    name="auditaction",
    create_type=False,
)
holdertype = postgresql.ENUM("entity", "staff", "branch", name="holdertype", create_type=False)
contributiontype = postgresql.ENUM(
    "deposit", "investment", "card_purchase", "asset_contribution", "withdrawal",
    "kpi_bonus", "referral_commission", "share_distribution", "franchise_fee",
    name="contributiontype",
    create_type=False,
)
contributionkind = postgresql.ENUM("cash", "asset", "effort", "card", name="contributionkind", create_type=False)
approvalstatus = postgresql.ENUM(
    "pending", "approved", "rejected", "completed", name="approvalstatus", create_type=False,
)
kpistate = postgresql.ENUM(
    "uncomputed", "scored", "ineligible", "eligible", "processed", name="kpistate", create_type=False,
)
periodstatus = postgresql.ENUM("pending", "completed", "cancelled", name="periodstatus", create_type=False)
distributiontype = postgresql.ENUM("capital", "labor", name="distributiontype", create_type=False)
paymentstatus = postgresql.ENUM("pending", "paid", "cancelled", name="paymentstatus", create_type=False)
ledgerentrytype = postgresql.ENUM("income", "expense", name="ledgerentrytype", create_type=False)
referralstatus = postgresql.ENUM(
    "pending", "completed", "paid", "cancelled", name="referralstatus", create_type=False,
)

ENUMS = (
    userrole, auditaction, holdertype, contributiontype, contributionkind, approvalstatus,
    kpistate, periodstatus, distributiontype, paymentstatus, ledgerentrytype, referralstatus,
)


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    ]


def _balances():
    return [
        sa.Column("token_balance", AMOUNT, nullable=False, server_default="0"),
        sa.Column("base_investment", AMOUNT, nullable=False, server_default="0"),
        sa.Column("cumulative_distributed", AMOUNT, nullable=False, server_default="0"),
        sa.Column("maxout_reached", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
    ]


def upgrade() -> None:
    """Create all tables."""
    bind = op.get_bind()
    for enum in ENUMS:
        enum.create(bind, checkfirst=True)

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("username", sa.String(100), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("role", userrole, nullable=False),
        sa.Column("display_name", sa.String(100), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("last_active_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_users_username", "users", ["username"], unique=True)

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("action", auditaction, nullable=False),
        sa.Column("target_type", sa.String(50), nullable=True),
        sa.Column("target_id", sa.Integer(), nullable=True),
        sa.Column("action_metadata", sa.JSON(), nullable=True),
        sa.Column("ip_address", sa.String(45), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_audit_logs_user_id", "audit_logs", ["user_id"])
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"])
    op.create_index("ix_audit_logs_created_at", "audit_logs", ["created_at"])
    op.create_index("ix_audit_logs_target", "audit_logs", ["target_type", "target_id"])

    op.create_table(
        "business_tier_configs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("tier_name", sa.String(50), nullable=False, unique=True),
        sa.Column("min_investment", AMOUNT, nullable=False, server_default="0"),
        sa.Column("token_multiplier", sa.Numeric(6, 2), nullable=False, server_default="1.0"),
        sa.Column("maxout_multiplier", sa.Numeric(6, 2), nullable=True),
        sa.Column("shares_per_unit", sa.Numeric(8, 2), nullable=False, server_default="1.0"),
        sa.Column("base_shares", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("unlimited_shares", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("kpi_required", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )

    op.create_table(
        "entities",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("code", sa.String(64), nullable=False),
        sa.Column("name", sa.String(200), nullable=True),
        sa.Column("tier", sa.String(50), nullable=False),
        sa.Column("cumulative_amount", AMOUNT, nullable=False, server_default="0"),
        sa.Column("capital_shares", AMOUNT, nullable=False, server_default="0"),
        sa.Column("labor_shares", AMOUNT, nullable=False, server_default="0"),
        sa.Column("withdrawable_balance", AMOUNT, nullable=False, server_default="0"),
        *_balances(),
        *_timestamps(),
    )
    op.create_index("ix_entities_code", "entities", ["code"], unique=True)
    op.create_index("ix_entities_tier", "entities", ["tier"])

    op.create_table(
        "branches",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("code", sa.String(64), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("tier", sa.String(50), nullable=False),
        sa.Column("shares", AMOUNT, nullable=False, server_default="0"),
        sa.Column("kpi_score", sa.Numeric(10, 4), nullable=False, server_default="0"),
        *_balances(),
        *_timestamps(),
    )
    op.create_index("ix_branches_code", "branches", ["code"], unique=True)

    op.create_table(
        "staff_members",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("code", sa.String(64), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("position", sa.String(100), nullable=True),
        sa.Column("branch_id", sa.Integer(), sa.ForeignKey("branches.id"), nullable=True),
        sa.Column("shares", AMOUNT, nullable=False, server_default="0"),
        sa.Column("equity_percentage", sa.Numeric(9, 4), nullable=False, server_default="0"),
        *_balances(),
        *_timestamps(),
    )
    op.create_index("ix_staff_members_code", "staff_members", ["code"], unique=True)
    op.create_index("ix_staff_members_branch_id", "staff_members", ["branch_id"])

    op.create_table(
        "contribution_events",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("holder_type", holdertype, nullable=False),
        sa.Column("holder_id", sa.Integer(), nullable=False),
        sa.Column("event_type", contributiontype, nullable=False),
        sa.Column("kind", contributionkind, nullable=True),
        sa.Column("amount", AMOUNT, nullable=False),
        sa.Column("token_amount", AMOUNT, nullable=False, server_default="0"),
        sa.Column("shares_granted", AMOUNT, nullable=False, server_default="0"),
        sa.Column("distributed_value", AMOUNT, nullable=False, server_default="0"),
        sa.Column("tax_amount", AMOUNT, nullable=False, server_default="0"),
        sa.Column("tier_before", sa.String(50), nullable=True),
        sa.Column("tier_after", sa.String(50), nullable=True),
        sa.Column("maxout_reached", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("status", approvalstatus, nullable=False),
        sa.Column("period_value", sa.String(7), nullable=True),
        sa.Column("description", sa.String(500), nullable=True),
        sa.Column("approved_by_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_contribution_events_holder_id", "contribution_events", ["holder_id"])
    op.create_index("ix_contribution_events_event_type", "contribution_events", ["event_type"])
    op.create_index("ix_contribution_events_status", "contribution_events", ["status"])

    op.create_table(
        "kpi_period_records",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("holder_type", holdertype, nullable=False),
        sa.Column("holder_id", sa.Integer(), nullable=False),
        sa.Column("period_value", sa.String(7), nullable=False),
        sa.Column("card_sales", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("customer_retention", sa.Numeric(7, 2), nullable=False, server_default="0"),
        sa.Column("revenue", AMOUNT, nullable=False, server_default="0"),
        sa.Column("target_revenue", AMOUNT, nullable=False, server_default="0"),
        sa.Column("total_points", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("score", sa.Numeric(10, 4), nullable=False, server_default="0"),
        sa.Column("state", kpistate, nullable=False),
        sa.Column("is_eligible", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("slots_earned", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("shares_awarded", AMOUNT, nullable=False, server_default="0"),
        sa.Column("token_earned", AMOUNT, nullable=False, server_default="0"),
        sa.Column("is_processed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("holder_type", "holder_id", "period_value", name="uq_kpi_holder_period"),
    )
    op.create_index("ix_kpi_period_records_holder_id", "kpi_period_records", ["holder_id"])
    op.create_index("ix_kpi_period_records_period_value", "kpi_period_records", ["period_value"])

    op.create_table(
        "profit_sharing_periods",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("period", sa.String(20), nullable=False),
        sa.Column("period_value", sa.String(7), nullable=False),
        sa.Column("total_revenue", AMOUNT, nullable=False, server_default="0"),
        sa.Column("total_expenses", AMOUNT, nullable=False, server_default="0"),
        sa.Column("net_profit", AMOUNT, nullable=False, server_default="0"),
        sa.Column("distribution_pool", AMOUNT, nullable=False, server_default="0"),
        sa.Column("capital_pool", AMOUNT, nullable=False, server_default="0"),
        sa.Column("labor_pool", AMOUNT, nullable=False, server_default="0"),
        sa.Column("total_shares", AMOUNT, nullable=False, server_default="0"),
        sa.Column("capital_shares", AMOUNT, nullable=False, server_default="0"),
        sa.Column("labor_shares", AMOUNT, nullable=False, server_default="0"),
        sa.Column("profit_per_share", AMOUNT, nullable=False, server_default="0"),
        sa.Column("capital_profit_per_share", AMOUNT, nullable=False, server_default="0"),
        sa.Column("labor_profit_per_share", AMOUNT, nullable=False, server_default="0"),
        sa.Column("total_distributed", AMOUNT, nullable=False, server_default="0"),
        sa.Column("undistributed_amount", AMOUNT, nullable=False, server_default="0"),
        sa.Column("status", periodstatus, nullable=False),
        sa.Column("processed_by_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_profit_sharing_periods_period_value", "profit_sharing_periods", ["period_value"])
    # At most one live run per quarter; cancelled runs are kept for history
    op.create_index(
        "uq_profit_sharing_live_period",
        "profit_sharing_periods",
        ["period", "period_value"],
        unique=True,
        postgresql_where=sa.text("status <> 'cancelled'"),
    )

    op.create_table(
        "profit_distribution_records",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "profit_sharing_id",
            sa.Integer(),
            sa.ForeignKey("profit_sharing_periods.id"),
            nullable=False,
        ),
        sa.Column("holder_type", holdertype, nullable=False),
        sa.Column("holder_id", sa.Integer(), nullable=False),
        sa.Column("holder_name", sa.String(200), nullable=True),
        sa.Column("distribution_type", distributiontype, nullable=False),
        sa.Column("shares_owned", AMOUNT, nullable=False),
        sa.Column("raw_amount", AMOUNT, nullable=False),
        sa.Column("distribution_amount", AMOUNT, nullable=False),
        sa.Column("token_amount", AMOUNT, nullable=False),
        sa.Column("maxout_applied", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("payment_status", paymentstatus, nullable=False),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index(
        "ix_profit_distribution_records_profit_sharing_id",
        "profit_distribution_records",
        ["profit_sharing_id"],
    )
    op.create_index("ix_profit_distribution_records_holder_id", "profit_distribution_records", ["holder_id"])

    op.create_table(
        "ledger",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("entry_type", ledgerentrytype, nullable=False),
        sa.Column("amount", AMOUNT, nullable=False),
        sa.Column("description", sa.String(500), nullable=False),
        sa.Column("branch_id", sa.Integer(), sa.ForeignKey("branches.id"), nullable=True),
        sa.Column("occurred_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("recorded_by_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_ledger_entry_type", "ledger", ["entry_type"])
    op.create_index("ix_ledger_branch_id", "ledger", ["branch_id"])
    op.create_index("ix_ledger_occurred_at", "ledger", ["occurred_at"])

    op.create_table(
        "referrals",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("referrer_id", sa.Integer(), sa.ForeignKey("entities.id"), nullable=False),
        sa.Column("referred_entity_id", sa.Integer(), sa.ForeignKey("entities.id"), nullable=True, unique=True),
        sa.Column("referral_code", sa.String(64), nullable=False),
        sa.Column(
            "first_contribution_id",
            sa.Integer(),
            sa.ForeignKey("contribution_events.id"),
            nullable=True,
        ),
        sa.Column("contribution_value", AMOUNT, nullable=False, server_default="0"),
        sa.Column("commission_rate", sa.Numeric(5, 4), nullable=False),
        sa.Column("commission_amount", AMOUNT, nullable=False, server_default="0"),
        sa.Column("commission_paid", AMOUNT, nullable=False, server_default="0"),
        sa.Column("status", referralstatus, nullable=False),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_referrals_referrer_id", "referrals", ["referrer_id"])
    op.create_index("ix_referrals_referral_code", "referrals", ["referral_code"], unique=True)


def downgrade() -> None:
    """Drop all tables in reverse order."""
    op.drop_table("referrals")
    op.drop_table("ledger")
    op.drop_table("profit_distribution_records")
    op.drop_table("profit_sharing_periods")
    op.drop_table("kpi_period_records")
    op.drop_table("contribution_events")
    op.drop_table("staff_members")
    op.drop_table("branches")
    op.drop_table("entities")
    op.drop_table("business_tier_configs")
    op.drop_table("audit_logs")
    op.drop_table("users")

    bind = op.get_bind()
    for enum in reversed(ENUMS):
        enum.drop(bind, checkfirst=True)
