"""Domain models for nurture billing."""

from packages.nurture_billing.models.domain.enums import (
    ChargeStatus,
    ClaimState,
    MonthlyChargeOutcome,
)
from packages.nurture_billing.models.domain.monthly_charge import (
    MonthlyCharge,
    MonthlyChargeCreateModel,
    MonthlyChargeResult,
    classify_claim,
    period_key_for,
)

__all__ = [
    "ChargeStatus",
    "ClaimState",
    "MonthlyChargeOutcome",
    "MonthlyCharge",
    "MonthlyChargeCreateModel",
    "MonthlyChargeResult",
    "classify_claim",
    "period_key_for",
]
