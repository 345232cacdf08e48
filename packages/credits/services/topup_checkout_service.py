"""
Manual credit purchases through Stripe Checkout.

start_top_up creates a checkout session (or, outside production without
Stripe, credits the account directly). confirm_checkout applies a paid
session's credits exactly once.
"""

from datetime import datetime, timezone
from typing import Optional

from common.core.config import settings
from common.core.constants import Environment
from common.core.exceptions import (
    BillingConfigurationError,
    CheckoutIncompleteError,
    LedgerContentionError,
    NotFoundError,
    ValidationError,
)
from common.core.otel_axiom_exporter import trace_span, get_logger
from common.db.context import transactional
from packages.credits.models.domain.enums import ServiceSlug, TopUpMode
from packages.credits.models.domain.topup import TopUpConfirmation, TopUpStartResult
from packages.credits.providers.identity import (
    IdentityProviderInterface,
    get_identity_provider,
)
from packages.credits.providers.payment import (
    PaymentProviderInterface,
    get_payment_provider,
)
from packages.credits.repositories.service_setup_repository import (
    ServiceSetupRepository,
)
from packages.credits.services.ledger_service import CreditLedgerService

logger = get_logger(__name__)

TOP_UP_KIND = "credits_topup"
MAX_TOP_UP_CREDITS = 500_000
MAX_TOP_UP_PACKAGES = 200
APPLIED_SESSIONS_KEPT = 200


def _bounded_int(value, name: str, upper: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{name} must be an integer")
    if value < 1 or value > upper:
        raise ValidationError(f"{name} must be between 1 and {upper}")
    return value


def _applied_session_ids(data: Optional[dict]) -> list[str]:
    if not isinstance(data, dict):
        return []
    ids = data.get("appliedSessionIds")
    if not isinstance(ids, list):
        return []
    return [s.strip() for s in ids if isinstance(s, str) and s.strip()]


class TopUpCheckoutService:
    def __init__(
        self,
        ledger: Optional[CreditLedgerService] = None,
        setup_repo: Optional[ServiceSetupRepository] = None,
        payment_provider: Optional[PaymentProviderInterface] = None,
        identity_provider: Optional[IdentityProviderInterface] = None,
    ):
        self.setup_repo = setup_repo or ServiceSetupRepository()
        self.ledger = ledger or CreditLedgerService(setup_repo=self.setup_repo)
        self.payment_provider = payment_provider or get_payment_provider()
        self.identity_provider = identity_provider or get_identity_provider()
        self.credits_per_package = max(1, settings.credits_per_topup_package)
        self.max_attempts = max(1, settings.credits_ledger_cas_max_attempts)

    def requested_credits(
        self, credits: Optional[int] = None, packages: Optional[int] = None
    ) -> int:
        """Credits for a purchase request; `credits` wins over legacy `packages`."""
        if credits is not None:
            return _bounded_int(credits, "credits", MAX_TOP_UP_CREDITS)
        if packages is not None:
            return (
                _bounded_int(packages, "packages", MAX_TOP_UP_PACKAGES)
                * self.credits_per_package
            )
        raise ValidationError("credits is required")

    @trace_span
    async def start_top_up(
        self,
        owner_id: str,
        credits: Optional[int] = None,
        packages: Optional[int] = None,
    ) -> TopUpStartResult:
        """
        Start a manual purchase.

        Raises:
            ValidationError: Neither credits nor packages given, or out of range
            BillingConfigurationError: Production deployment without Stripe or
                a top-up price
        """
        requested = self.requested_credits(credits, packages)
        if not settings.purchase_available:
            raise BillingConfigurationError(
                "Purchasing credits is unavailable right now."
            )

        email = await self.identity_provider.get_email(owner_id)
        if not self.payment_provider.is_configured() or not email:
            if settings.environment == Environment.PRODUCTION:
                raise BillingConfigurationError(
                    "Purchasing credits is unavailable right now."
                )

            state = await self.ledger.add(owner_id, requested)
            logger.info(
                f"Test-mode top-up of {requested} credits for owner {owner_id}",
                extra={"owner_id": owner_id, "credits": requested},
            )
            return TopUpStartResult(
                mode=TopUpMode.TEST,
                credited=requested,
                balance=state.balance,
                credits_per_package=self.credits_per_package,
            )

        customer_id = await self.payment_provider.get_or_create_customer(email)
        base_url = settings.app_base_url.rstrip("/")

        url = await self.payment_provider.create_top_up_checkout_session(
            customer_id=customer_id,
            credits=requested,
            amount_cents=requested * settings.credits_topup_unit_amount_cents,
            currency=settings.credits_topup_currency,
            success_url=f"{base_url}/portal/app/billing?topup=success&session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=f"{base_url}/portal/app/billing?topup=cancel",
            metadata={
                "kind": TOP_UP_KIND,
                "ownerId": owner_id,
                "credits": str(requested),
                "packages": "" if packages is None else str(packages),
                "creditsPerPackage": str(self.credits_per_package),
            },
        )

        return TopUpStartResult(
            mode=TopUpMode.STRIPE,
            url=url,
            credits_per_package=self.credits_per_package,
        )

    @trace_span
    async def confirm_checkout(
        self, owner_id: str, session_id: str
    ) -> TopUpConfirmation:
        """
        Apply the credits of a paid checkout session at most once.

        Raises:
            BillingConfigurationError: Stripe not configured or owner has no email
            ValidationError: Session is not this owner's top-up or lacks credits
            NotFoundError: Session belongs to another customer
            CheckoutIncompleteError: Session not paid yet
        """
        session_id = (session_id or "").strip()
        if not session_id:
            raise ValidationError("sessionId is required")

        if not self.payment_provider.is_configured():
            raise BillingConfigurationError("Stripe is not configured")

        email = await self.identity_provider.get_email(owner_id)
        if not email:
            raise BillingConfigurationError("Missing user email")

        customer_id = await self.payment_provider.get_or_create_customer(email)
        checkout = await self.payment_provider.retrieve_checkout_session(session_id)

        if checkout.kind != TOP_UP_KIND or checkout.owner_id != owner_id:
            raise ValidationError("Mismatched checkout session")
        if not checkout.customer_id or checkout.customer_id != customer_id:
            raise NotFoundError(f"Checkout session {session_id} not found")
        if not checkout.is_paid():
            raise CheckoutIncompleteError("Checkout not complete")
        if checkout.credits <= 0:
            raise ValidationError("Missing credits metadata")

        applied = await self._apply_session_credits(
            owner_id, session_id, checkout.credits
        )

        if applied:
            logger.info(
                f"Applied checkout top-up of {checkout.credits} credits for owner {owner_id}",
                extra={
                    "owner_id": owner_id,
                    "session_id": session_id,
                    "credits": checkout.credits,
                },
            )
        else:
            logger.info(
                f"Checkout session {session_id} already applied",
                extra={"owner_id": owner_id, "session_id": session_id},
            )

        return TopUpConfirmation(applied=applied, credits_added=checkout.credits)

    @transactional
    async def _apply_session_credits(
        self, owner_id: str, session_id: str, credits: int
    ) -> bool:
        """Record the session id and credit the account in one transaction."""
        applied = await self._record_applied_session(owner_id, session_id)
        if applied:
            await self.ledger.add(owner_id, credits)
        return applied

    async def _record_applied_session(self, owner_id: str, session_id: str) -> bool:
        """Add session_id to the applied list. False if it was already there."""
        for _ in range(self.max_attempts):
            setup = await self.setup_repo.get_or_create(
                owner_id, ServiceSlug.CREDITS_TOPUP_LEDGER.value, {}
            )
            applied_ids = _applied_session_ids(setup.data_json)
            if session_id in applied_ids:
                return False

            applied_ids.append(session_id)
            data = {
                "appliedSessionIds": applied_ids[-APPLIED_SESSIONS_KEPT:],
                "updatedAtIso": datetime.now(timezone.utc).isoformat(),
            }
            if await self.setup_repo.compare_and_set_data(
                setup.id, setup.version, data
            ):
                return True

        raise LedgerContentionError(
            f"Top-up ledger for owner {owner_id} changed on every attempt"
        )
