import math

import pytest
from pydantic import ValidationError

from packages.credits.models.domain.credits import CreditsState, normalize_credit_amount
from packages.credits.models.domain.topup import CheckoutSessionInfo


@pytest.mark.parametrize(
    "value,expected",
    [
        (5, 5),
        (5.99, 5),
        (-1.5, -2),
        ("12", 12),
        (" 7.5 ", 7),
        ("abc", 0),
        (None, 0),
        (math.inf, 0),
        (False, 0),
    ],
)
def test_normalize_credit_amount(value, expected):
    assert normalize_credit_amount(value) == expected


def test_normalize_credit_amount_fallback():
    assert normalize_credit_amount(None, fallback=10) == 10
    assert normalize_credit_amount("nan", fallback=10) == 10


class TestCreditsState:
    def test_from_missing_document(self):
        state = CreditsState.from_document(None, default_balance=10)

        assert state.balance == 10
        assert state.auto_top_up is False

    def test_negative_stored_balance_is_clamped(self):
        state = CreditsState.from_document({"balance": -3}, default_balance=10)

        assert state.balance == 0

    def test_document_round_trip_keys(self):
        state = CreditsState(balance=4, auto_top_up=True)

        assert state.to_document() == {"balance": 4, "autoTopUp": True}

    def test_balance_cannot_be_negative(self):
        with pytest.raises(ValidationError):
            CreditsState(balance=-1)


@pytest.mark.parametrize(
    "payment_status,status,paid",
    [
        ("paid", "complete", True),
        ("paid", "open", True),
        ("no_payment_required", "complete", True),
        ("unpaid", "open", False),
        ("", "expired", False),
    ],
)
def test_checkout_session_is_paid(payment_status, status, paid):
    info = CheckoutSessionInfo(id="cs_1", payment_status=payment_status, status=status)

    assert info.is_paid() is paid
