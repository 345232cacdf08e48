"""Payment providers - customers, stored cards and charges."""

from packages.credits.providers.payment.interface import PaymentProviderInterface
from packages.credits.providers.payment.factory import get_payment_provider

__all__ = [
    "PaymentProviderInterface",
    "get_payment_provider",
]
