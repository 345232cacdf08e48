"""
Stripe implementation of payment provider.
"""

from typing import Optional
import stripe

from common.core.config import settings
from common.core.exceptions import PaymentProviderError
from common.core.otel_axiom_exporter import trace_span, get_logger
from packages.credits.models.domain.credits import normalize_credit_amount
from packages.credits.models.domain.topup import CheckoutSessionInfo, PackagePrice
from packages.credits.providers.payment.interface import PaymentProviderInterface

logger = get_logger(__name__)


class StripePaymentProvider(PaymentProviderInterface):
    """Stripe-based payment implementation."""

    def __init__(self):
        """Initialize Stripe with API credentials."""
        stripe.api_key = settings.stripe_secret_key
        self.top_up_price_id = settings.stripe_price_id_credits_topup.strip()

    def is_configured(self) -> bool:
        return settings.is_stripe_configured

    @trace_span
    async def get_or_create_customer(self, email: str) -> str:
        """Reuse the first customer with this email, or create one."""
        try:
            existing = stripe.Customer.list(email=email, limit=1)
            if existing.data:
                return existing.data[0].id

            customer = stripe.Customer.create(email=email)
            logger.info(
                "Created Stripe customer", extra={"customer_id": customer.id}
            )
            return customer.id

        except stripe.StripeError as e:
            logger.error(
                f"Failed to resolve Stripe customer: {str(e)}",
                extra={"error": str(e)},
            )
            raise PaymentProviderError(str(e)) from e

    @trace_span
    async def get_default_payment_method(self, customer_id: str) -> Optional[str]:
        """
        Invoice-settings default payment method, else the first stored card.
        """
        try:
            customer = stripe.Customer.retrieve(customer_id)
            invoice_settings = customer.get("invoice_settings") or {}
            default_pm = invoice_settings.get("default_payment_method")
            if isinstance(default_pm, str) and default_pm:
                return default_pm
            if default_pm is not None and getattr(default_pm, "id", None):
                # Expanded PaymentMethod object
                return default_pm.id

            cards = stripe.PaymentMethod.list(customer=customer_id, type="card", limit=1)
            if cards.data:
                return cards.data[0].id
            return None

        except stripe.StripeError as e:
            logger.error(
                f"Failed to fetch payment method: {str(e)}",
                extra={"customer_id": customer_id, "error": str(e)},
            )
            raise PaymentProviderError(str(e)) from e

    @trace_span
    async def get_top_up_package_price(self) -> Optional[PackagePrice]:
        if not self.top_up_price_id:
            return None

        try:
            price = stripe.Price.retrieve(self.top_up_price_id)
        except stripe.StripeError as e:
            logger.error(
                f"Failed to retrieve top-up price: {str(e)}",
                extra={"price_id": self.top_up_price_id, "error": str(e)},
            )
            raise PaymentProviderError(str(e)) from e

        unit_amount = price.get("unit_amount")
        if not isinstance(unit_amount, int) or unit_amount <= 0:
            logger.warning(
                "Top-up price has no fixed unit amount",
                extra={"price_id": self.top_up_price_id},
            )
            return None

        return PackagePrice(
            unit_amount_cents=unit_amount,
            currency=price.get("currency") or settings.credits_topup_currency,
        )

    @trace_span
    async def create_off_session_charge(
        self,
        customer_id: str,
        payment_method_id: str,
        amount_cents: int,
        currency: str,
        metadata: dict[str, str],
        description: Optional[str] = None,
    ) -> str:
        try:
            intent = stripe.PaymentIntent.create(
                amount=amount_cents,
                currency=currency,
                customer=customer_id,
                payment_method=payment_method_id,
                off_session=True,
                confirm=True,
                description=description,
                metadata=metadata,
            )
        except stripe.StripeError as e:
            logger.error(
                f"Off-session charge failed: {str(e)}",
                extra={"customer_id": customer_id, "error": str(e)},
            )
            raise PaymentProviderError(str(e)) from e

        if intent.status != "succeeded":
            logger.error(
                f"Off-session charge ended in status {intent.status}",
                extra={"customer_id": customer_id, "payment_intent_id": intent.id},
            )
            raise PaymentProviderError(
                f"Payment {intent.id} did not succeed (status={intent.status})"
            )

        logger.info(
            "Created off-session charge",
            extra={
                "customer_id": customer_id,
                "payment_intent_id": intent.id,
                "amount_cents": amount_cents,
            },
        )
        return intent.id

    @trace_span
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
        # Inline price so Checkout shows the purchased credit quantity
        try:
            session = stripe.checkout.Session.create(
                mode="payment",
                customer=customer_id,
                success_url=success_url,
                cancel_url=cancel_url,
                allow_promotion_codes=True,
                metadata=metadata,
                line_items=[
                    {
                        "price_data": {
                            "currency": currency,
                            "unit_amount": amount_cents,
                            "product_data": {"name": f"{credits} credits"},
                        },
                        "quantity": 1,
                    }
                ],
            )
        except stripe.StripeError as e:
            logger.error(
                f"Failed to create top-up checkout session: {str(e)}",
                extra={"customer_id": customer_id, "error": str(e)},
            )
            raise PaymentProviderError(str(e)) from e

        logger.info(
            "Created Stripe top-up checkout session",
            extra={"customer_id": customer_id, "session_id": session.id},
        )
        return session.url

    @trace_span
    async def retrieve_checkout_session(self, session_id: str) -> CheckoutSessionInfo:
        try:
            session = stripe.checkout.Session.retrieve(session_id)
        except stripe.StripeError as e:
            logger.error(
                f"Failed to retrieve checkout session: {str(e)}",
                extra={"session_id": session_id, "error": str(e)},
            )
            raise PaymentProviderError(str(e)) from e

        metadata = session.get("metadata") or {}
        customer = session.get("customer")
        return CheckoutSessionInfo(
            id=session.id,
            customer_id=customer if isinstance(customer, str) else None,
            kind=str(metadata.get("kind") or "").strip(),
            owner_id=str(metadata.get("ownerId") or "").strip(),
            credits=max(0, normalize_credit_amount(metadata.get("credits"))),
            payment_status=str(session.get("payment_status") or ""),
            status=str(session.get("status") or ""),
        )

    @trace_span
    async def health_check(self) -> bool:
        """Check Stripe health."""
        if not self.is_configured():
            return False
        try:
            stripe.Account.retrieve()
            return True
        except stripe.StripeError as e:
            logger.error(f"Payment health check failed: {e}")
            return False
