"""Nurture billing services."""

from packages.nurture_billing.services.monthly_charge_service import (
    MonthlyChargeService,
)

__all__ = [
    "MonthlyChargeService",
]
