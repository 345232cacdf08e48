"""
Domain models for credit top-ups (automatic and checkout based).
"""

from typing import Optional
from pydantic import BaseModel, Field

from packages.credits.models.domain.enums import TopUpMode


class PackagePrice(BaseModel):
    """Price of one auto top-up package as configured in Stripe."""

    unit_amount_cents: int = Field(ge=0)
    currency: str


class CheckoutSessionInfo(BaseModel):
    """The fields of a Stripe checkout session that top-up confirmation relies on."""

    id: str
    customer_id: Optional[str] = None
    kind: str = ""
    owner_id: str = ""
    credits: int = 0
    payment_status: str = ""
    status: str = ""

    def is_paid(self) -> bool:
        return self.payment_status == "paid" or self.status == "complete"


class TopUpStartResult(BaseModel):
    mode: TopUpMode
    url: Optional[str] = None
    credited: int = 0
    balance: Optional[int] = None
    credits_per_package: int


class TopUpConfirmation(BaseModel):
    applied: bool  # False when this checkout session was already applied
    credits_added: int
