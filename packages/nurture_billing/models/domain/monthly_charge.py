"""
Domain models for nurture campaign monthly charges.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional
from pydantic import BaseModel, ConfigDict, field_validator

from packages.credits.models.domain.credits import CreditsState
from packages.nurture_billing.models.domain.enums import (
    ChargeStatus,
    ClaimState,
    MonthlyChargeOutcome,
)


def as_utc(value: datetime) -> datetime:
    """Naive datetimes are taken to be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def period_key_for(now: datetime) -> str:
    """Billing period of a moment: its UTC calendar month as "YYYY-MM"."""
    return as_utc(now).strftime("%Y-%m")


class MonthlyCharge(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    owner_id: str
    campaign_id: str
    period_key: str
    status: ChargeStatus
    credits: int
    charged_at: Optional[datetime] = None
    last_error: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("charged_at", "created_at", "updated_at")
    @classmethod
    def _normalize_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        # SQLite hands back naive datetimes
        return as_utc(v) if v is not None else None

    def age(self, now: datetime) -> Optional[timedelta]:
        """Time since the last transition; None when unknown."""
        if self.updated_at is None:
            return None
        return max(timedelta(0), as_utc(now) - self.updated_at)

    def claim_state(
        self, now: datetime, pending_ttl: timedelta, failed_retry_after: timedelta
    ) -> ClaimState:
        age = self.age(now)

        match self.status:
            case ChargeStatus.CHARGED:
                return ClaimState.CHARGED
            case ChargeStatus.PENDING:
                if age is not None and age < pending_ttl:
                    return ClaimState.PENDING_FRESH
                return ClaimState.PENDING_STALE
            case ChargeStatus.FAILED:
                if age is not None and age < failed_retry_after:
                    return ClaimState.FAILED_FRESH
                return ClaimState.FAILED_STALE


def classify_claim(
    row: Optional[MonthlyCharge],
    now: datetime,
    pending_ttl: timedelta,
    failed_retry_after: timedelta,
) -> ClaimState:
    if row is None:
        return ClaimState.NO_ROW
    return row.claim_state(now, pending_ttl, failed_retry_after)


class MonthlyChargeCreateModel(BaseModel):
    owner_id: str
    campaign_id: str
    period_key: str
    status: str = ChargeStatus.PENDING.value
    credits: int
    updated_at: datetime


class MonthlyChargeResult(BaseModel):
    """
    Outcome of one ensure-monthly-charge call.

    PENDING and FAILED_RECENT are contention, not errors: someone else holds
    or recently used the claim.
    """

    outcome: MonthlyChargeOutcome
    period_key: str
    state: Optional[CreditsState] = None  # Ledger state on INSUFFICIENT_CREDITS
    error: Optional[str] = None  # Set on ERROR

    @property
    def ok(self) -> bool:
        return self.outcome in (
            MonthlyChargeOutcome.CHARGED,
            MonthlyChargeOutcome.ALREADY_CHARGED,
        )

    @property
    def already_charged(self) -> bool:
        return self.outcome == MonthlyChargeOutcome.ALREADY_CHARGED
