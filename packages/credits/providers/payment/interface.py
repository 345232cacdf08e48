"""
Interface for payment providers.

Abstracts payment processing away from specific platforms (Stripe, etc.)
"""

from abc import ABC, abstractmethod
from typing import Optional

from packages.credits.models.domain.topup import CheckoutSessionInfo, PackagePrice


class PaymentProviderInterface(ABC):
    """Abstract interface for payment providers."""

    @abstractmethod
    def is_configured(self) -> bool:
        """Whether credentials are present. Unconfigured means fail closed."""
        pass

    @abstractmethod
    async def get_or_create_customer(self, email: str) -> str:
        """
        Find the customer for an email, creating one if none exists.

        Returns:
            customer_id: Payment provider customer ID
        """
        pass

    @abstractmethod
    async def get_default_payment_method(self, customer_id: str) -> Optional[str]:
        """
        Get the customer's default stored payment method.

        Returns:
            payment_method_id, or None when the customer has none
        """
        pass

    @abstractmethod
    async def get_top_up_package_price(self) -> Optional[PackagePrice]:
        """
        Resolve the configured price of one auto top-up package.

        Returns:
            PackagePrice, or None when no price is configured
        """
        pass

    @abstractmethod
    async def create_off_session_charge(
        self,
        customer_id: str,
        payment_method_id: str,
        amount_cents: int,
        currency: str,
        metadata: dict[str, str],
        description: Optional[str] = None,
    ) -> str:
        """
        Charge a stored payment method without the customer present.

        The charge is confirmed immediately and must succeed synchronously.

        Returns:
            payment_intent_id
        """
        pass

    @abstractmethod
    async def create_top_up_checkout_session(
        self,
        customer_id: str,
        credits: int,
        amount_cents: int,
        currency: str,
        success_url: str,
        cancel_url: str,
        metadata: dict[str, str],
    ) -> str:
        """
        Create a hosted checkout session for a manual credit purchase.

        Returns:
            checkout_url
        """
        pass

    @abstractmethod
    async def retrieve_checkout_session(self, session_id: str) -> CheckoutSessionInfo:
        """Fetch a checkout session created by create_top_up_checkout_session."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Check if the payment backend is available and healthy.

        Returns:
            True if healthy, False otherwise
        """
        pass
