"""
Domain models for the credits ledger.
"""

import math
from typing import Any, Optional
from pydantic import BaseModel, Field

from packages.credits.models.domain.enums import AutoTopUpFailureReason


def normalize_credit_amount(value: Any, fallback: int = 0) -> int:
    """
    Floor a numeric (or numeric string) amount to an integer.

    Non-numeric and non-finite input yields `fallback`.
    """
    if isinstance(value, bool):
        return fallback
    try:
        number = float(value)
    except (TypeError, ValueError):
        return fallback
    if not math.isfinite(number):
        return fallback
    return math.floor(number)


class CreditsState(BaseModel):
    """
    Ledger record for one account.

    Stored as the "credits" service document: {"balance": int, "autoTopUp": bool}.
    """

    balance: int = Field(ge=0)
    auto_top_up: bool = False

    @classmethod
    def from_document(cls, data: Optional[dict], default_balance: int) -> "CreditsState":
        """Parse a stored document, tolerating missing or malformed fields."""
        record = data if isinstance(data, dict) else {}
        balance = max(0, normalize_credit_amount(record.get("balance"), default_balance))
        return cls(balance=balance, auto_top_up=bool(record.get("autoTopUp")))

    def to_document(self) -> dict:
        return {"balance": self.balance, "autoTopUp": self.auto_top_up}


class ConsumeResult(BaseModel):
    """
    Outcome of a consume attempt.

    A denial is a normal result (ok=False), never an exception; callers use it
    to prompt for a manual top-up.
    """

    ok: bool
    state: CreditsState


class AutoTopUpResult(BaseModel):
    """Outcome of one automatic replenishment cycle."""

    ok: bool
    reason: Optional[AutoTopUpFailureReason] = None
    packages: int = 0
    credits_added: int = 0
    payment_intent_id: Optional[str] = None
    state: Optional[CreditsState] = None
