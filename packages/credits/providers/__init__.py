"""Credits providers - abstracted external collaborators."""

from packages.credits.providers.identity.factory import get_identity_provider
from packages.credits.providers.payment.factory import get_payment_provider

__all__ = [
    "get_identity_provider",
    "get_payment_provider",
]
