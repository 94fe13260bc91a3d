"""
Cart Service
Per-user cart mutations; totals are recalculated after every change
"""
import logging
from typing import Optional

from sqlalchemy.orm import Session

from storefront.connectors.rates import RatesConnector
from storefront.core.errors import NotFoundError, ValidationFailed
from storefront.models import Cart, CartItem, User
from storefront.repositories import CartRepository, ProductRepository
from storefront.services.coupon_service import CouponService
from storefront.services.pricing import line_subtotal, money, recalculate_cart

logger = logging.getLogger(__name__)


class CartService:

    def __init__(self, db: Session, rates: Optional[RatesConnector] = None):
        self.db = db
        self.rates = rates
        self.carts = CartRepository(db)
        self.products = ProductRepository(db)

    def get(self, user: User) -> Optional[Cart]:
        return self.carts.find_for_user(user.id)

    def _save(self, cart: Cart) -> Cart:
        recalculate_cart(cart)
        self.db.commit()
        self.db.refresh(cart)
        return cart

    def _active_product(self, product_id: int):
        product = self.products.find_by_id(product_id)
        if product is None or not product.is_active:
            raise NotFoundError("Product not found")
        return product

    def add_item(self, user: User, product_id: int, quantity: int = 1, variant: Optional[dict] = None) -> Cart:
        """
        Add a product, merging with an existing line for the same variant

        Raises:
            NotFoundError: Unknown or inactive product
            ValidationFailed: Not enough stock for the combined quantity
        """
        product = self._active_product(product_id)
        cart = self.carts.get_or_create(user.id)

        item = self.carts.find_item(cart, product.id, variant)
        requested = quantity + (item.quantity if item else 0)
        if not product.check_stock(requested):
            raise ValidationFailed("Insufficient stock")

        if item:
            item.quantity = requested
            item.price = product.price
        else:
            cart.items.append(CartItem(
                product_id=product.id,
                product=product,
                quantity=quantity,
                price=product.price,
                variant=variant,
            ))

        logger.debug(f"Cart {cart.id}: +{quantity} x product {product.id}")
        return self._save(cart)

    def update_item(self, user: User, product_id: int, quantity: int) -> Cart:
        cart = self.carts.get_or_create(user.id)
        item = self.carts.find_item(cart, product_id)
        if item is None:
            raise NotFoundError("Item not found in cart")

        product = self._active_product(product_id)
        if not product.check_stock(quantity):
            raise ValidationFailed("Insufficient stock")

        item.quantity = quantity
        item.price = product.price
        return self._save(cart)

    def remove_item(self, user: User, product_id: int) -> Cart:
        cart = self.carts.get_or_create(user.id)
        item = self.carts.find_item(cart, product_id)
        if item is None:
            raise NotFoundError("Item not found in cart")

        cart.items.remove(item)
        return self._save(cart)

    @staticmethod
    def reset(cart: Cart) -> None:
        """Empty the cart and drop coupon, shipping and tax"""
        cart.items.clear()
        cart.coupon_code = None
        cart.coupon_type = None
        cart.coupon_value = None
        cart.coupon_max_discount = None
        cart.shipping_method = None
        cart.shipping_address = None
        cart.shipping_quote = 0
        cart.tax_rate = 0
        recalculate_cart(cart)

    def clear(self, user: User) -> Cart:
        cart = self.carts.get_or_create(user.id)
        self.reset(cart)
        self.db.commit()
        self.db.refresh(cart)
        return cart

    def apply_coupon(self, user: User, code: str) -> Cart:
        cart = self.carts.get_or_create(user.id)
        if not cart.items:
            raise ValidationFailed("Cart is empty")

        coupon, _ = CouponService(self.db).validate(
            code,
            user,
            line_subtotal(cart.items),
            [item.product for item in cart.items],
        )

        cart.coupon_code = coupon.code
        cart.coupon_type = coupon.type
        cart.coupon_value = coupon.value
        cart.coupon_max_discount = coupon.max_discount

        logger.info(f"Coupon {coupon.code} applied to cart {cart.id}")
        return self._save(cart)

    def remove_coupon(self, user: User) -> Cart:
        cart = self.carts.get_or_create(user.id)
        cart.coupon_code = None
        cart.coupon_type = None
        cart.coupon_value = None
        cart.coupon_max_discount = None
        return self._save(cart)

    async def set_shipping(self, user: User, method: str, address: dict) -> Cart:
        """Quote shipping and look up the tax rate for the destination"""
        cart = self.carts.get_or_create(user.id)

        parcel = [
            {"price": item.price, "quantity": item.quantity, "weight": item.product.weight_value}
            for item in cart.items
        ]
        cart.shipping_quote = money(await self.rates.get_shipping_cost(address, parcel))
        cart.tax_rate = await self.rates.get_tax_rate(address)
        cart.shipping_method = method
        cart.shipping_address = address

        return self._save(cart)
