"""
Factory for getting payment provider instance.
"""

from packages.credits.providers.payment.interface import PaymentProviderInterface
from packages.credits.providers.payment.stripe_payment import StripePaymentProvider


def get_payment_provider() -> PaymentProviderInterface:
    """
    Get payment provider instance.

    Only Stripe is supported. An unconfigured provider is still returned;
    callers check is_configured() and fail closed.

    Returns:
        PaymentProviderInterface: Configured payment provider
    """
    return StripePaymentProvider()
