"""
Nurture billing enums.
"""

from enum import Enum


class ChargeStatus(str, Enum):
    """Stored status of a claim row."""

    PENDING = "PENDING"
    CHARGED = "CHARGED"  # Terminal
    FAILED = "FAILED"  # Terminal until reclaimed


class ClaimState(str, Enum):
    """What a caller observes for a (campaign, period) before acting."""

    NO_ROW = "no_row"
    PENDING_FRESH = "pending_fresh"  # Another attempt is in flight
    PENDING_STALE = "pending_stale"  # Abandoned attempt, may be taken over
    CHARGED = "charged"
    FAILED_FRESH = "failed_fresh"  # Inside the retry cooldown
    FAILED_STALE = "failed_stale"  # May be reclaimed


class MonthlyChargeOutcome(str, Enum):
    CHARGED = "charged"
    ALREADY_CHARGED = "already_charged"
    PENDING = "pending"
    FAILED_RECENT = "failed_recent"
    INSUFFICIENT_CREDITS = "insufficient_credits"
    ERROR = "error"
