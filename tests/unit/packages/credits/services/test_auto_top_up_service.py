"""
Unit tests for AutoTopUpService.

Tests replenishment with a mocked Stripe provider.
Database interactions are NOT mocked.
"""

import pytest
from unittest.mock import AsyncMock

from common.core.exceptions import LedgerContentionError, PaymentProviderError
from packages.credits.models.domain.enums import AutoTopUpFailureReason
from packages.credits.providers.identity.noop_identity import (
    MappingIdentityProvider,
    NoOpIdentityProvider,
)
from packages.credits.services.auto_top_up_service import AutoTopUpService
from packages.credits.services.ledger_service import CreditLedgerService

OWNER_ID = "owner_1"


@pytest.fixture
def auto_top_up(mock_payment_provider, identity_provider):
    return AutoTopUpService(
        ledger=CreditLedgerService(),
        payment_provider=mock_payment_provider,
        identity_provider=identity_provider,
    )


class TestPackagesForShortfall:
    @pytest.mark.parametrize(
        "needed,balance,expected",
        [
            (30, 5, 1),  # shortfall 25 -> exactly one package
            (31, 5, 2),
            (10, 10, 1),  # no shortfall still buys one package
            (1, 50, 1),
            (5000, 0, 20),  # capped
        ],
    )
    def test_packages_for_shortfall(self, auto_top_up, needed, balance, expected):
        assert auto_top_up.packages_for_shortfall(needed, balance) == expected


@pytest.mark.asyncio
class TestAutoTopUpService:
    async def test_successful_top_up_credits_ledger(
        self, auto_top_up, mock_payment_provider, seed_ledger
    ):
        await seed_ledger(OWNER_ID, 5, auto_top_up=True)

        result = await auto_top_up.try_auto_top_up(
            OWNER_ID, needed=60, current_balance=5
        )

        assert result.ok is True
        assert result.reason is None
        assert result.packages == 3
        assert result.credits_added == 75
        assert result.payment_intent_id == "pi_test123"
        assert result.state.balance == 80

        mock_payment_provider.create_off_session_charge.assert_awaited_once_with(
            customer_id="cus_test123",
            payment_method_id="pm_card_visa",
            amount_cents=7500,
            currency="usd",
            metadata={
                "kind": "credits_auto_topup",
                "ownerId": OWNER_ID,
                "packages": "3",
                "creditsPerPackage": "25",
                "credits": "75",
            },
            description="Auto top-up: 75 credits",
        )

    async def test_not_configured(self, auto_top_up, mock_payment_provider):
        mock_payment_provider.is_configured.return_value = False

        result = await auto_top_up.try_auto_top_up(OWNER_ID, 30, 5)

        assert result.ok is False
        assert result.reason == AutoTopUpFailureReason.NOT_CONFIGURED
        mock_payment_provider.get_or_create_customer.assert_not_called()

    async def test_missing_email(self, mock_payment_provider):
        service = AutoTopUpService(
            payment_provider=mock_payment_provider,
            identity_provider=NoOpIdentityProvider(),
        )

        result = await service.try_auto_top_up(OWNER_ID, 30, 5)

        assert result.ok is False
        assert result.reason == AutoTopUpFailureReason.MISSING_EMAIL

    async def test_blank_email_is_missing(self, mock_payment_provider):
        service = AutoTopUpService(
            payment_provider=mock_payment_provider,
            identity_provider=MappingIdentityProvider({OWNER_ID: "   "}),
        )

        result = await service.try_auto_top_up(OWNER_ID, 30, 5)

        assert result.reason == AutoTopUpFailureReason.MISSING_EMAIL

    async def test_no_payment_method(self, auto_top_up, mock_payment_provider):
        mock_payment_provider.get_default_payment_method = AsyncMock(return_value=None)

        result = await auto_top_up.try_auto_top_up(OWNER_ID, 30, 5)

        assert result.ok is False
        assert result.reason == AutoTopUpFailureReason.NO_PAYMENT_METHOD
        mock_payment_provider.create_off_session_charge.assert_not_called()

    async def test_no_price(self, auto_top_up, mock_payment_provider):
        mock_payment_provider.get_top_up_package_price = AsyncMock(return_value=None)

        result = await auto_top_up.try_auto_top_up(OWNER_ID, 30, 5)

        assert result.ok is False
        assert result.reason == AutoTopUpFailureReason.NO_PRICE
        mock_payment_provider.create_off_session_charge.assert_not_called()

    async def test_processor_error_does_not_credit(
        self, auto_top_up, mock_payment_provider, seed_ledger
    ):
        await seed_ledger(OWNER_ID, 5, auto_top_up=True)
        mock_payment_provider.create_off_session_charge = AsyncMock(
            side_effect=PaymentProviderError("Your card was declined.")
        )

        result = await auto_top_up.try_auto_top_up(OWNER_ID, 30, 5)

        assert result.ok is False
        assert result.reason == AutoTopUpFailureReason.PROCESSOR_ERROR
        assert result.packages == 1
        assert (await auto_top_up.ledger.get_state(OWNER_ID)).balance == 5

    async def test_customer_lookup_error(self, auto_top_up, mock_payment_provider):
        mock_payment_provider.get_or_create_customer = AsyncMock(
            side_effect=PaymentProviderError("api unreachable")
        )

        result = await auto_top_up.try_auto_top_up(OWNER_ID, 30, 5)

        assert result.reason == AutoTopUpFailureReason.PROCESSOR_ERROR

    async def test_identity_lookup_error_is_missing_email(self, mock_payment_provider):
        identity = AsyncMock()
        identity.get_email = AsyncMock(side_effect=RuntimeError("directory down"))
        service = AutoTopUpService(
            payment_provider=mock_payment_provider,
            identity_provider=identity,
        )

        result = await service.try_auto_top_up(OWNER_ID, 30, 5)

        assert result.ok is False
        assert result.reason == AutoTopUpFailureReason.MISSING_EMAIL
        mock_payment_provider.get_or_create_customer.assert_not_called()

    async def test_ledger_failure_after_charge_is_reported(
        self, auto_top_up, mock_payment_provider, seed_ledger
    ):
        await seed_ledger(OWNER_ID, 5, auto_top_up=True)
        real_ledger = auto_top_up.ledger
        auto_top_up.ledger = AsyncMock()
        auto_top_up.ledger.add = AsyncMock(
            side_effect=LedgerContentionError("ledger busy")
        )

        result = await auto_top_up.try_auto_top_up(OWNER_ID, 30, 5)

        assert result.ok is False
        assert result.reason == AutoTopUpFailureReason.LEDGER_ERROR
        assert result.payment_intent_id == "pi_test123"
        assert result.packages == 1
        assert result.state is None
        mock_payment_provider.create_off_session_charge.assert_awaited_once()
        assert (await real_ledger.get_state(OWNER_ID)).balance == 5
