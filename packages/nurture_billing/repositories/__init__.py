"""Nurture billing repositories."""

from packages.nurture_billing.repositories.monthly_charge_repository import (
    MonthlyChargeRepository,
)

__all__ = [
    "MonthlyChargeRepository",
]
