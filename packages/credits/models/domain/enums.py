"""
Credits enums - strongly typed document namespaces and outcome reasons.
"""

from enum import Enum


class ServiceSlug(str, Enum):
    """Namespaces of the per-account JSON documents owned by this package."""

    CREDITS = "credits"  # {balance, autoTopUp}
    CREDITS_TOPUP_LEDGER = "credits-topup-ledger"  # {appliedSessionIds, updatedAtIso}


class ServiceSetupStatus(str, Enum):
    NOT_STARTED = "NOT_STARTED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETE = "COMPLETE"


class AutoTopUpFailureReason(str, Enum):
    """Why an automatic top-up did not add credits. All of them fail closed."""

    NOT_CONFIGURED = "not_configured"  # No Stripe key
    MISSING_EMAIL = "missing_email"  # Owner has no resolvable email
    NO_PAYMENT_METHOD = "no_payment_method"  # Customer has no stored card
    NO_PRICE = "no_price"  # Package price not configured or not resolvable
    PROCESSOR_ERROR = "processor_error"  # Stripe rejected or was unreachable
    LEDGER_ERROR = "ledger_error"  # Charged, but the credits could not be recorded


class TopUpMode(str, Enum):
    """How a manual top-up was fulfilled."""

    TEST = "test"  # Credits added directly (non-production without Stripe)
    STRIPE = "stripe"  # Checkout session created, credits added on confirmation
