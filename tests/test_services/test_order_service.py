"""
Tests for OrderService: checkout, fulfilment, cancellation and refunds

The rates connector talks to the fake APIs from conftest (10% tax,
$5 shipping); payments and mailer are mocks.
"""
import asyncio
import re
import smtplib
from datetime import datetime
from decimal import Decimal

import pytest

from storefront.connectors.payments import PaymentError
from storefront.core.errors import NotFoundError, PermissionDenied, StoreError, ValidationFailed
from storefront.domain.order import OrderCreate
from storefront.models import Order
from storefront.services import CartService, OrderService

ADDRESS = {
    "street": "1 Main St",
    "city": "Springfield",
    "state": "IL",
    "zip_code": "62701",
    "country": "US",
}


@pytest.fixture
def service(db, rates, payments, mailer):
    return OrderService(db, rates=rates, payments=payments, mailer=mailer)


def checkout(service, user, items=None, **overrides):
    values = {
        "items": items,
        "shipping_address": ADDRESS,
        "payment_method": "credit_card",
    }
    values.update(overrides)
    return asyncio.run(service.create(user, OrderCreate(**values), "203.0.113.7", "pytest-agent"))


class TestCreate:

    def test_totals_from_items(self, db, user, make_product, service, mailer):
        product = make_product(price=Decimal("20.00"), stock=5)

        order, client_secret = checkout(service, user, [{"product_id": product.id, "quantity": 2}])

        assert re.fullmatch(r"ORD-\d{13}-\d{3}", order.order_number)
        assert order.subtotal == Decimal("40.00")
        assert order.shipping_cost == Decimal("5.00")
        assert order.tax_amount == Decimal("4.00")
        assert order.discount_amount == Decimal("0")
        assert order.total == Decimal("49.00")
        assert order.status == "pending"
        assert order.payment_status == "pending"
        assert order.estimated_delivery == datetime(2030, 1, 10, 12, 0)
        assert client_secret is None
        mailer.send_order_confirmation.assert_called_once_with(order)

    def test_line_snapshot_and_stock(self, db, user, make_product, service):
        product = make_product(name="Phone X", price=Decimal("20.00"), stock=5)

        order, _ = checkout(service, user, [{"product_id": product.id, "quantity": 2}])
        db.refresh(product)

        item = order.items[0]
        assert item.name == "Phone X"
        assert item.sku == product.sku
        assert item.total == Decimal("40.00")
        assert product.stock == 3

    def test_initial_history_entry(self, db, user, make_product, service):
        product = make_product()

        order, _ = checkout(service, user, [{"product_id": product.id, "quantity": 1}])

        assert len(order.status_history) == 1
        entry = order.status_history[0]
        assert entry.status == "pending"
        assert entry.changed_by_id == user.id
        assert entry.ip_address == "203.0.113.7"
        assert entry.user_agent == "pytest-agent"

    def test_from_cart_clears_cart(self, db, user, make_product, service):
        product = make_product(price=Decimal("15.00"))
        CartService(db).add_item(user, product.id, 2)

        order, _ = checkout(service, user)
        cart = CartService(db).get(user)

        assert order.subtotal == Decimal("30.00")
        assert cart.items == []
        assert cart.total == Decimal("0")

    def test_empty_cart(self, db, user, service):
        with pytest.raises(ValidationFailed, match="Cart is empty"):
            checkout(service, user)

    def test_unknown_product(self, db, user, make_product, service):
        product = make_product()

        with pytest.raises(NotFoundError, match="One or more products not found"):
            checkout(service, user, [
                {"product_id": product.id, "quantity": 1},
                {"product_id": 999, "quantity": 1},
            ])

    def test_insufficient_stock(self, db, user, make_product, service):
        product = make_product(name="Tablet", stock=1)

        with pytest.raises(ValidationFailed, match="Insufficient stock for product: Tablet"):
            checkout(service, user, [{"product_id": product.id, "quantity": 2}])

    def test_percentage_coupon(self, db, user, make_product, make_coupon, service):
        product = make_product(price=Decimal("20.00"))
        coupon = make_coupon(usage_limit=5)

        order, _ = checkout(service, user, [{"product_id": product.id, "quantity": 2}], coupon_code="save10")
        db.refresh(coupon)

        # subtotal 40, discount 4, tax (40 - 4) * 0.1, shipping 5
        assert order.coupon_code == "SAVE10"
        assert order.discount_amount == Decimal("4.00")
        assert order.tax_amount == Decimal("3.60")
        assert order.total == Decimal("44.60")
        assert coupon.usage_limit == 4

    def test_free_shipping_coupon(self, db, user, make_product, make_coupon, service):
        product = make_product(price=Decimal("20.00"))
        make_coupon(code="SHIPFREE", type="free_shipping", value=Decimal("0"))

        order, _ = checkout(service, user, [{"product_id": product.id, "quantity": 1}], coupon_code="SHIPFREE")

        assert order.shipping_cost == Decimal("0")
        assert order.total == Decimal("22.00")

    def test_stripe_returns_client_secret(self, db, user, make_product, service, payments):
        product = make_product()

        order, client_secret = checkout(
            service, user, [{"product_id": product.id, "quantity": 1}], payment_method="stripe"
        )

        assert client_secret == "pi_123_secret_456"
        payments.create_payment_intent.assert_called_once()

    def test_stripe_failure_rolls_back(self, db, user, make_product, service, payments):
        product = make_product(stock=5)
        payments.create_payment_intent.side_effect = PaymentError("card_declined")

        with pytest.raises(StoreError) as exc_info:
            checkout(service, user, [{"product_id": product.id, "quantity": 2}], payment_method="stripe")

        db.refresh(product)
        assert exc_info.value.status_code == 502
        assert product.stock == 5
        assert db.query(Order).count() == 0

    def test_email_failure_is_not_fatal(self, db, user, make_product, service, mailer):
        product = make_product()
        mailer.send_order_confirmation.side_effect = smtplib.SMTPException("connection refused")

        order, _ = checkout(service, user, [{"product_id": product.id, "quantity": 1}])

        assert order.id is not None


class TestAccess:

    def test_owner_and_admin_can_view(self, db, user, admin, make_product, service):
        product = make_product()
        order, _ = checkout(service, user, [{"product_id": product.id, "quantity": 1}])

        assert service.get_for_user(order.id, user).id == order.id
        assert service.get_for_user(order.id, admin).id == order.id

    def test_other_user_cannot_view(self, db, user, other_user, make_product, service):
        product = make_product()
        order, _ = checkout(service, user, [{"product_id": product.id, "quantity": 1}])

        with pytest.raises(PermissionDenied, match="Not authorized to view this order"):
            service.get_for_user(order.id, other_user)

    def test_unknown_order(self, db, user, service):
        with pytest.raises(NotFoundError, match="Order not found"):
            service.get_for_user(12345, user)


class TestFulfilment:

    def test_status_change_records_history_and_emails(self, db, user, admin, make_product, service, mailer):
        product = make_product()
        order, _ = checkout(service, user, [{"product_id": product.id, "quantity": 1}])

        order = service.update_status(order.id, "processing", admin, "Packing")

        assert order.status == "processing"
        assert order.admin_notes == "Packing"
        assert {entry.status for entry in order.status_history} == {"pending", "processing"}
        assert any(entry.changed_by_id == admin.id for entry in order.status_history)
        mailer.send_order_status_update.assert_called_once_with(order)

    def test_delivered_recomputes_sales(self, db, user, admin, make_product, service):
        product = make_product(price=Decimal("20.00"))
        order, _ = checkout(service, user, [{"product_id": product.id, "quantity": 2}])

        service.update_status(order.id, "delivered", admin)
        db.refresh(product)

        assert product.sales == 2
        assert product.revenue == Decimal("40.00")

    def test_shipped_with_tracking_sends_shipped_email(self, db, user, admin, make_product, service, mailer):
        product = make_product()
        order, _ = checkout(service, user, [{"product_id": product.id, "quantity": 1}])
        service.add_tracking(order.id, "UPS", "1Z999")

        order = service.update_status(order.id, "shipped", admin)

        mailer.send_order_shipped.assert_called_once_with(order)
        mailer.send_order_status_update.assert_not_called()

    def test_update_payment(self, db, user, make_product, service):
        product = make_product()
        order, _ = checkout(service, user, [{"product_id": product.id, "quantity": 1}])

        order = service.update_payment(order.id, "completed", "txn_42")

        assert order.payment_status == "completed"
        assert order.payment_transaction_id == "txn_42"

    def test_tracking_updates_are_appended(self, db, user, make_product, service):
        product = make_product()
        order, _ = checkout(service, user, [{"product_id": product.id, "quantity": 1}])

        order = service.add_tracking(order.id, "UPS", "1Z999", "https://ups.example/1Z999")
        assert order.tracking_status == "pending"
        assert order.tracking_updates == []

        service.update_tracking(order.id, "in_transit", "Chicago", "Departed facility")
        order = service.update_tracking(order.id, "out_for_delivery", "Springfield")

        assert order.tracking_status == "out_for_delivery"
        assert [update["status"] for update in order.tracking_updates] == ["in_transit", "out_for_delivery"]
        assert order.tracking_updates[0]["location"] == "Chicago"

    def test_tracking_update_without_tracking(self, db, user, make_product, service):
        product = make_product()
        order, _ = checkout(service, user, [{"product_id": product.id, "quantity": 1}])

        with pytest.raises(ValidationFailed, match="No tracking information available"):
            service.update_tracking(order.id, "in_transit")


class TestCancel:

    def test_restores_stock(self, db, user, make_product, service, mailer):
        product = make_product(stock=5)
        order, _ = checkout(service, user, [{"product_id": product.id, "quantity": 3}])

        order = service.cancel(order.id, user)
        db.refresh(product)

        assert order.status == "cancelled"
        assert product.stock == 5
        assert len(order.status_history) == 2
        mailer.send_order_cancelled.assert_called_once_with(order)

    def test_only_pending_orders(self, db, user, admin, make_product, service):
        product = make_product()
        order, _ = checkout(service, user, [{"product_id": product.id, "quantity": 1}])
        service.update_status(order.id, "shipped", admin)

        with pytest.raises(ValidationFailed, match="Order cannot be cancelled at this stage"):
            service.cancel(order.id, user)

    def test_other_user_cannot_cancel(self, db, user, other_user, make_product, service):
        product = make_product()
        order, _ = checkout(service, user, [{"product_id": product.id, "quantity": 1}])

        with pytest.raises(PermissionDenied, match="Not authorized to cancel this order"):
            service.cancel(order.id, other_user)


class TestRefund:

    def paid_order(self, service, user, make_product):
        product = make_product(price=Decimal("20.00"))
        order, _ = checkout(service, user, [{"product_id": product.id, "quantity": 1}])
        return service.update_payment(order.id, "completed", "txn_1")

    def test_requires_completed_payment(self, db, user, admin, make_product, service):
        product = make_product()
        order, _ = checkout(service, user, [{"product_id": product.id, "quantity": 1}])

        with pytest.raises(ValidationFailed, match="Cannot refund an incomplete payment"):
            service.refund(order.id, Decimal("5"), "Damaged", admin)

    def test_amount_cannot_exceed_total(self, db, user, admin, make_product, service):
        order = self.paid_order(service, user, make_product)

        with pytest.raises(ValidationFailed, match="Refund amount cannot exceed order total"):
            service.refund(order.id, order.total + Decimal("0.01"), "Damaged", admin)

    def test_refund(self, db, user, admin, make_product, service, mailer):
        order = self.paid_order(service, user, make_product)

        order, refund = service.refund(order.id, Decimal("10"), "Damaged", admin)

        assert refund.amount == Decimal("10.00")
        assert refund.status == "completed"
        assert refund.payment_method == "credit_card"
        assert refund.transaction_id == "txn_1"
        assert refund.processed_by_id == admin.id
        assert order.status == "refunded"
        assert order.payment_status == "refunded"
        mailer.send_refund_processed.assert_called_once_with(order, refund)
