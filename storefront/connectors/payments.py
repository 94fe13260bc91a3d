"""
Stripe Payments Connector
Creates payment intents for orders paid by card through Stripe
"""
import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

import stripe

from storefront.core.config import settings

logger = logging.getLogger(__name__)


class PaymentError(Exception):
    """Stripe rejected or failed a request"""


class PaymentsConnector:
    """
    Connector for the Stripe API

    Handles:
    - Payment intent creation (client secret handed to the front end)
    """

    def __init__(self, api_key: str = None, currency: str = None):
        self.api_key = api_key if api_key is not None else settings.STRIPE_SECRET_KEY
        self.currency = (currency or settings.CURRENCY).lower()

    @staticmethod
    def amount_in_cents(total) -> int:
        return int((Decimal(str(total)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))

    def create_payment_intent(self, order) -> Optional[str]:
        """
        Create a payment intent for the order total

        Args:
            order: Order with id, order_number and total

        Returns:
            Client secret, or None when Stripe is not configured

        Raises:
            PaymentError: If Stripe fails
        """
        if not self.api_key:
            logger.warning(f"STRIPE_SECRET_KEY not set, no payment intent for order {order.order_number}")
            return None

        try:
            intent = stripe.PaymentIntent.create(
                api_key=self.api_key,
                amount=self.amount_in_cents(order.total),
                currency=self.currency,
                metadata={
                    "order_id": str(order.id),
                    "order_number": order.order_number,
                },
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe payment intent failed for order {order.order_number}: {e}")
            raise PaymentError(str(e)) from e

        logger.info(f"Payment intent {intent.id} created for order {order.order_number}")
        return intent.client_secret


def get_payments_connector() -> PaymentsConnector:
    """FastAPI dependency; overridden in tests"""
    return PaymentsConnector()
