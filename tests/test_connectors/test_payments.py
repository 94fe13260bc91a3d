"""
Tests for PaymentsConnector with stripe.PaymentIntent.create patched
"""
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
import stripe

from storefront.connectors.payments import PaymentError, PaymentsConnector

ORDER = SimpleNamespace(id=7, order_number="ORD-1-007", total=Decimal("49.99"))


class TestPaymentsConnector:

    @pytest.mark.parametrize("total,cents", [
        (Decimal("49.99"), 4999),
        (Decimal("10"), 1000),
        ("0.005", 1),
    ])
    def test_amount_in_cents(self, total, cents):
        assert PaymentsConnector.amount_in_cents(total) == cents

    def test_creates_intent(self):
        # Arrange
        connector = PaymentsConnector(api_key="sk_test_123", currency="USD")
        intent = MagicMock(id="pi_1", client_secret="pi_1_secret_abc")

        # Act
        with patch("stripe.PaymentIntent.create", return_value=intent) as create:
            secret = connector.create_payment_intent(ORDER)

        # Assert
        assert secret == "pi_1_secret_abc"
        create.assert_called_once_with(
            api_key="sk_test_123",
            amount=4999,
            currency="usd",
            metadata={"order_id": "7", "order_number": "ORD-1-007"},
        )

    def test_not_configured(self):
        with patch("stripe.PaymentIntent.create") as create:
            secret = PaymentsConnector(api_key="").create_payment_intent(ORDER)

        assert secret is None
        create.assert_not_called()

    def test_stripe_error(self):
        connector = PaymentsConnector(api_key="sk_test_123")

        with patch("stripe.PaymentIntent.create", side_effect=stripe.StripeError("card declined")):
            with pytest.raises(PaymentError, match="card declined"):
                connector.create_payment_intent(ORDER)
