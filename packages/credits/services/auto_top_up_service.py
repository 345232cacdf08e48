"""
Automatic credit replenishment through the payment processor.
"""

import math
from typing import Optional

from common.core.config import settings
from common.core.exceptions import PaymentProviderError
from common.core.otel_axiom_exporter import trace_span, get_logger
from packages.credits.models.domain.credits import AutoTopUpResult
from packages.credits.models.domain.enums import AutoTopUpFailureReason
from packages.credits.providers.identity import (
    IdentityProviderInterface,
    get_identity_provider,
)
from packages.credits.providers.payment import (
    PaymentProviderInterface,
    get_payment_provider,
)
from packages.credits.services.ledger_service import CreditLedgerService

logger = get_logger(__name__)

AUTO_TOP_UP_KIND = "credits_auto_topup"


class AutoTopUpService:
    """
    Buys credit packages off-session with the owner's stored card.

    One cycle per call, no retries. Every billing failure fails closed and is
    reported as AutoTopUpResult(ok=False, reason=...).
    """

    def __init__(
        self,
        ledger: Optional[CreditLedgerService] = None,
        payment_provider: Optional[PaymentProviderInterface] = None,
        identity_provider: Optional[IdentityProviderInterface] = None,
    ):
        self.ledger = ledger or CreditLedgerService()
        self.payment_provider = payment_provider or get_payment_provider()
        self.identity_provider = identity_provider or get_identity_provider()
        self.credits_per_package = max(1, settings.credits_per_topup_package)
        self.max_packages = max(1, settings.credits_topup_max_packages)

    def packages_for_shortfall(self, needed: int, current_balance: int) -> int:
        shortfall = max(0, needed - current_balance)
        packages = math.ceil(shortfall / self.credits_per_package)
        return min(self.max_packages, max(1, packages))

    def _fail(
        self, owner_id: str, reason: AutoTopUpFailureReason, packages: int = 0
    ) -> AutoTopUpResult:
        logger.info(
            f"Auto top-up skipped for owner {owner_id}: {reason.value}",
            extra={"owner_id": owner_id, "reason": reason.value},
        )
        return AutoTopUpResult(ok=False, reason=reason, packages=packages)

    @trace_span
    async def try_auto_top_up(
        self, owner_id: str, needed: int, current_balance: int
    ) -> AutoTopUpResult:
        """
        Purchase enough packages to cover `needed` and credit them.

        Args:
            owner_id: Account to replenish
            needed: Credits the pending action requires
            current_balance: Balance observed before the attempt

        Returns:
            AutoTopUpResult with the new ledger state on success
        """
        if not self.payment_provider.is_configured():
            return self._fail(owner_id, AutoTopUpFailureReason.NOT_CONFIGURED)

        try:
            email = await self.identity_provider.get_email(owner_id)
        except Exception as e:
            logger.warning(
                f"Email lookup failed for owner {owner_id}: {e}",
                extra={"owner_id": owner_id},
            )
            email = None
        if not email:
            return self._fail(owner_id, AutoTopUpFailureReason.MISSING_EMAIL)

        packages = self.packages_for_shortfall(needed, current_balance)
        credits = packages * self.credits_per_package

        try:
            customer_id = await self.payment_provider.get_or_create_customer(email)

            payment_method_id = await self.payment_provider.get_default_payment_method(
                customer_id
            )
            if not payment_method_id:
                return self._fail(
                    owner_id, AutoTopUpFailureReason.NO_PAYMENT_METHOD, packages
                )

            price = await self.payment_provider.get_top_up_package_price()
            if price is None:
                return self._fail(owner_id, AutoTopUpFailureReason.NO_PRICE, packages)

            payment_intent_id = await self.payment_provider.create_off_session_charge(
                customer_id=customer_id,
                payment_method_id=payment_method_id,
                amount_cents=packages * price.unit_amount_cents,
                currency=price.currency,
                metadata={
                    "kind": AUTO_TOP_UP_KIND,
                    "ownerId": owner_id,
                    "packages": str(packages),
                    "creditsPerPackage": str(self.credits_per_package),
                    "credits": str(credits),
                },
                description=f"Auto top-up: {credits} credits",
            )
        except PaymentProviderError as e:
            logger.error(
                f"Auto top-up charge failed for owner {owner_id}: {str(e)}",
                extra={"owner_id": owner_id, "packages": packages},
            )
            return AutoTopUpResult(
                ok=False,
                reason=AutoTopUpFailureReason.PROCESSOR_ERROR,
                packages=packages,
            )

        try:
            state = await self.ledger.add(owner_id, credits)
        except Exception as e:
            # Money was taken; the payment intent is the reconciliation handle
            logger.error(
                f"Auto top-up charged but credits not recorded for owner {owner_id}: {e}",
                extra={
                    "owner_id": owner_id,
                    "packages": packages,
                    "credits": credits,
                    "payment_intent_id": payment_intent_id,
                },
            )
            return AutoTopUpResult(
                ok=False,
                reason=AutoTopUpFailureReason.LEDGER_ERROR,
                packages=packages,
                payment_intent_id=payment_intent_id,
            )

        logger.info(
            f"Auto top-up of {credits} credits for owner {owner_id}",
            extra={
                "owner_id": owner_id,
                "packages": packages,
                "credits": credits,
                "payment_intent_id": payment_intent_id,
            },
        )
        return AutoTopUpResult(
            ok=True,
            packages=packages,
            credits_added=credits,
            payment_intent_id=payment_intent_id,
            state=state,
        )
