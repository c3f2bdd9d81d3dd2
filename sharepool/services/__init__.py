"""Business logic services."""

from sharepool.services.approval import approve_contribution, reject_contribution
from sharepool.services.contribution import compute_contribution, rebase_investment, record_contribution
from sharepool.services.distribution import (
    mark_distribution_paid,
    process_all_payments,
    process_quarterly_distribution,
)
from sharepool.services.holders import create_staff_member, open_branch
from sharepool.services.kpi import calculate_kpi
from sharepool.services.ledger import preview_quarter, record_ledger_entry, revenue_and_expenses
from sharepool.services.referral import create_referral, mark_commission_paid
from sharepool.services.tiers import classify, seed_default_tiers
from sharepool.services.units import to_currency, to_token_units
from sharepool.services.withdrawal import calculate_withdrawal, request_withdrawal

__all__ = [
    "to_token_units",
    "to_currency",
    "classify",
    "seed_default_tiers",
    "compute_contribution",
    "record_contribution",
    "rebase_investment",
    "approve_contribution",
    "reject_contribution",
    "create_staff_member",
    "open_branch",
    "calculate_kpi",
    "process_quarterly_distribution",
    "mark_distribution_paid",
    "process_all_payments",
    "calculate_withdrawal",
    "request_withdrawal",
    "record_ledger_entry",
    "revenue_and_expenses",
    "preview_quarter",
    "create_referral",
    "mark_commission_paid",
]
