"""
Order Service
Checkout, status transitions, tracking, cancellation and refunds

Flow of create():
1. Resolve lines (explicit items or the user's cart)
2. Check products and stock
3. Quote shipping, tax and delivery via the rates connector
4. Validate the coupon (free_shipping zeroes shipping)
5. Persist order + initial status, decrement stock, redeem coupon
6. Create a Stripe payment intent when paying with stripe
7. Commit, then send the confirmation email
"""
import logging
import random
import time
from collections import defaultdict
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from storefront.connectors.mailer import Mailer
from storefront.connectors.payments import PaymentError, PaymentsConnector
from storefront.connectors.rates import RatesConnector
from storefront.core.config import settings
from storefront.core.errors import NotFoundError, PermissionDenied, StoreError, ValidationFailed
from storefront.domain.order import OrderCreate
from storefront.models import Order, OrderItem, OrderStatus, Refund, User
from storefront.models.mixins import utcnow
from storefront.repositories import CartRepository, OrderRepository, ProductRepository
from storefront.services.cart_service import CartService
from storefront.services.coupon_service import CouponService
from storefront.services.notifications import notify
from storefront.services.pricing import FREE_SHIPPING, ZERO, line_subtotal, money, order_total, to_decimal
from storefront.services.product_service import ProductService

logger = logging.getLogger(__name__)


def generate_order_number() -> str:
    """ORD-<epoch ms>-<3 random digits>"""
    return f"ORD-{int(time.time() * 1000)}-{random.randint(0, 999):03d}"


class OrderService:

    def __init__(
        self,
        db: Session,
        rates: Optional[RatesConnector] = None,
        payments: Optional[PaymentsConnector] = None,
        mailer: Optional[Mailer] = None,
    ):
        self.db = db
        self.rates = rates
        self.payments = payments
        self.mailer = mailer
        self.orders = OrderRepository(db)
        self.products = ProductRepository(db)
        self.carts = CartRepository(db)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get(self, order_id: int) -> Order:
        order = self.orders.find_by_id(order_id)
        if order is None:
            raise NotFoundError("Order not found")
        return order

    def get_for_user(self, order_id: int, user: User) -> Order:
        """Owner or admin only"""
        order = self.get(order_id)
        if order.user_id != user.id and not user.is_admin:
            raise PermissionDenied("Not authorized to view this order")
        return order

    def _unique_order_number(self) -> str:
        number = generate_order_number()
        while self.orders.find_by_number(number) is not None:
            number = generate_order_number()
        return number

    @staticmethod
    def _history(order: Order, status: str, notes: str = None, changed_by: User = None,
                 ip_address: str = None, user_agent: str = None) -> None:
        order.status_history.append(OrderStatus(
            status=status,
            notes=notes,
            changed_by_id=changed_by.id if changed_by else None,
            ip_address=ip_address,
            user_agent=user_agent,
        ))

    # ------------------------------------------------------------------
    # Checkout
    # ------------------------------------------------------------------

    def _resolve_lines(self, user: User, data: OrderCreate):
        """
        Returns:
            Tuple of ([(product_id, quantity, variant)], cart or None)
        """
        if data.items:
            lines = [
                (item.product_id, item.quantity, item.variant.model_dump() if item.variant else None)
                for item in data.items
            ]
            return lines, None

        cart = self.carts.find_for_user(user.id)
        if cart is None or not cart.items:
            raise ValidationFailed("Cart is empty")
        return [(item.product_id, item.quantity, item.variant) for item in cart.items], cart

    async def create(
        self,
        user: User,
        data: OrderCreate,
        ip_address: str = None,
        user_agent: str = None,
    ) -> Tuple[Order, Optional[str]]:
        """
        Place an order

        Returns:
            Tuple of (order, Stripe client secret or None)
        """
        lines, cart = self._resolve_lines(user, data)

        products = {product.id: product for product in self.products.find_many(pid for pid, _, _ in lines)}
        if any(products.get(pid) is None or not products[pid].is_active for pid, _, _ in lines):
            raise NotFoundError("One or more products not found")

        requested = defaultdict(int)
        for product_id, quantity, _ in lines:
            requested[product_id] += quantity
        for product_id, quantity in requested.items():
            product = products[product_id]
            if not product.check_stock(quantity):
                raise ValidationFailed(f"Insufficient stock for product: {product.name}")

        order_items: List[OrderItem] = []
        for product_id, quantity, variant in lines:
            product = products[product_id]
            order_items.append(OrderItem(
                product_id=product.id,
                name=product.name,
                sku=product.sku,
                quantity=quantity,
                price=product.price,
                variant=variant,
                total=money(to_decimal(product.price) * quantity),
            ))
        subtotal = line_subtotal(order_items)

        address = data.shipping_address.model_dump()
        parcel = [
            {"price": item.price, "quantity": item.quantity, "weight": products[item.product_id].weight_value}
            for item in order_items
        ]
        shipping = money(await self.rates.get_shipping_cost(address, parcel))
        tax_rate = to_decimal(await self.rates.get_tax_rate(address))
        estimated_delivery = await self.rates.get_estimated_delivery(address, data.shipping_method)

        coupon = None
        discount = ZERO
        coupon_code = data.coupon_code or (cart.coupon_code if cart is not None else None)
        if coupon_code:
            coupon, discount = CouponService(self.db).validate(
                coupon_code, user, subtotal, [products[item.product_id] for item in order_items]
            )
            if coupon.type == FREE_SHIPPING:
                shipping = ZERO

        tax = money((subtotal - discount) * tax_rate)
        total = order_total(subtotal, shipping, tax, discount)

        order = Order(
            order_number=self._unique_order_number(),
            user_id=user.id,
            subtotal=subtotal,
            discount_amount=discount,
            tax_rate=tax_rate,
            tax_amount=tax,
            shipping_cost=shipping,
            total=total,
            coupon_code=coupon.code if coupon else None,
            coupon_type=coupon.type if coupon else None,
            shipping_method=data.shipping_method,
            shipping_address=address,
            estimated_delivery=estimated_delivery,
            tracking_updates=[],
            payment_method=data.payment_method,
            payment_status="pending",
            payment_amount=total,
            currency=settings.CURRENCY,
            status="pending",
            customer_notes=data.notes,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        order.items = order_items
        self._history(order, "pending", "Order created", user, ip_address, user_agent)

        for product_id, quantity in requested.items():
            products[product_id].stock -= quantity

        if coupon is not None:
            CouponService(self.db).redeem(coupon)

        if cart is not None:
            CartService.reset(cart)

        self.orders.add(order)

        client_secret = None
        if data.payment_method == "stripe":
            try:
                client_secret = self.payments.create_payment_intent(order)
            except PaymentError:
                self.db.rollback()
                raise StoreError("Payment processing failed", status_code=502)

        self.db.commit()
        self.db.refresh(order)

        logger.info(f"Order created: {order.order_number} (user {user.id}, total {order.total})")
        notify(self.mailer.send_order_confirmation, order)

        return order, client_secret

    # ------------------------------------------------------------------
    # Admin transitions
    # ------------------------------------------------------------------

    def update_status(
        self,
        order_id: int,
        status: str,
        admin: User,
        notes: str = None,
        ip_address: str = None,
        user_agent: str = None,
    ) -> Order:
        order = self.get(order_id)
        order.status = status
        self._history(order, status, notes, admin, ip_address, user_agent)
        if notes:
            order.admin_notes = notes

        if status == "delivered":
            ProductService(self.db).refresh_sales_stats(item.product_id for item in order.items)

        self.db.commit()
        self.db.refresh(order)
        logger.info(f"Order {order.order_number} -> {status} by admin {admin.id}")

        if status == "shipped" and order.has_tracking:
            notify(self.mailer.send_order_shipped, order)
        else:
            notify(self.mailer.send_order_status_update, order)
        return order

    def update_payment(self, order_id: int, status: str, transaction_id: str = None) -> Order:
        order = self.get(order_id)
        order.payment_status = status
        if transaction_id:
            order.payment_transaction_id = transaction_id

        self.db.commit()
        self.db.refresh(order)
        logger.info(f"Order {order.order_number} payment -> {status}")
        return order

    def add_tracking(self, order_id: int, carrier: str, tracking_number: str, url: str = None) -> Order:
        order = self.get(order_id)
        order.tracking_carrier = carrier
        order.tracking_number = tracking_number
        order.tracking_url = url
        order.tracking_status = "pending"
        order.tracking_updates = []

        self.db.commit()
        self.db.refresh(order)
        return order

    def update_tracking(self, order_id: int, status: str, location: str = None, description: str = None) -> Order:
        order = self.get(order_id)
        if not order.has_tracking:
            raise ValidationFailed("No tracking information available")

        order.tracking_status = status
        # Reassign so the JSON column is marked dirty
        order.tracking_updates = list(order.tracking_updates or []) + [{
            "status": status,
            "location": location,
            "description": description,
            "timestamp": utcnow().isoformat(),
        }]

        self.db.commit()
        self.db.refresh(order)
        return order

    def cancel(self, order_id: int, user: User, ip_address: str = None, user_agent: str = None) -> Order:
        """Owner or admin; only pending orders. Restores stock."""
        order = self.get(order_id)
        if order.user_id != user.id and not user.is_admin:
            raise PermissionDenied("Not authorized to cancel this order")

        if order.status != "pending":
            raise ValidationFailed("Order cannot be cancelled at this stage")

        products = {product.id: product for product in self.products.find_many(i.product_id for i in order.items)}
        for item in order.items:
            product = products.get(item.product_id)
            if product is not None:
                product.stock += item.quantity

        order.status = "cancelled"
        self._history(order, "cancelled", "Order cancelled", user, ip_address, user_agent)

        self.db.commit()
        self.db.refresh(order)
        logger.info(f"Order {order.order_number} cancelled by user {user.id}")
        notify(self.mailer.send_order_cancelled, order)
        return order

    def refund(self, order_id: int, amount, reason: str, admin: User) -> Tuple[Order, Refund]:
        order = self.get(order_id)
        if order.payment_status != "completed":
            raise ValidationFailed("Cannot refund an incomplete payment")

        amount = money(amount)
        if amount > to_decimal(order.total):
            raise ValidationFailed("Refund amount cannot exceed order total")

        refund = Refund(
            amount=amount,
            reason=reason,
            status="completed",
            payment_method=order.payment_method,
            transaction_id=order.payment_transaction_id,
            processed_by_id=admin.id,
        )
        order.refunds.append(refund)
        order.status = "refunded"
        order.payment_status = "refunded"
        self._history(order, "refunded", f"Refunded {amount}: {reason}", admin)

        self.db.commit()
        self.db.refresh(order)
        logger.info(f"Order {order.order_number} refunded {amount} by admin {admin.id}")
        notify(self.mailer.send_refund_processed, order, refund)
        return order, refund
