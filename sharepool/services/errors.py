"""
Engine error taxonomy.

Maxout is deliberately absent: clamping is reported through the
maxout_reached flag, never raised.
"""

from typing import Any, Optional


class EngineError(Exception):
    """Base class for all engine errors."""


class InvalidAmount(EngineError):
    """Non-positive or malformed amount."""


class ConfigurationError(EngineError):
    """Tier configuration is missing or unusable. Not retried."""


class InvalidPeriod(EngineError):
    """Malformed or out-of-range quarter value."""


class AlreadyProcessed(EngineError):
    """
    The quarter already has a live processing run.

    Callers treat this as a no-op: `existing` holds the prior
    ProfitSharingPeriod (or KPI record) unchanged.
    """

    def __init__(self, message: str, existing: Optional[Any] = None):
        super().__init__(message)
        self.existing = existing


class BelowMinimumWithdrawal(EngineError):
    """Withdrawal amount is under the configured minimum."""


class InsufficientBalance(EngineError):
    """Withdrawal exceeds the holder's withdrawable balance."""


class NotFound(EngineError):
    """Referenced record does not exist."""


class InvalidTransition(EngineError):
    """Status change not allowed from the record's current state."""
