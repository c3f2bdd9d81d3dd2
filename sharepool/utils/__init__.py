"""Utility functions."""

from sharepool.utils.audit import get_client_ip, log_action
from sharepool.utils.money import format_currency, truncate_amount
from sharepool.utils.password import hash_password, verify_password

__all__ = [
    "hash_password",
    "verify_password",
    "log_action",
    "get_client_ip",
    "format_currency",
    "truncate_amount",
]
