"""Database models for nurture billing."""

from packages.nurture_billing.models.database.monthly_charge import (
    NurtureCampaignMonthlyChargeEntity,
)

__all__ = [
    "NurtureCampaignMonthlyChargeEntity",
]
