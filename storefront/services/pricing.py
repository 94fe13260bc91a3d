"""
Pricing rules: money rounding, coupon validity and discounts, cart totals

Pure functions over ORM objects so the cart, coupon and checkout services
share a single implementation of the arithmetic.
"""
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

from storefront.models import Cart, Coupon, Product
from storefront.models.mixins import utcnow

CENT = Decimal("0.01")
ZERO = Decimal("0")

PERCENTAGE = "percentage"
FIXED = "fixed"
FREE_SHIPPING = "free_shipping"


def to_decimal(value) -> Decimal:
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def money(value) -> Decimal:
    """Round half-up to cents"""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def coupon_is_valid(coupon: Coupon, now: Optional[datetime] = None) -> bool:
    """Active, inside its date window and with redemptions left"""
    now = now or utcnow()
    if not coupon.is_active:
        return False
    if not (coupon.start_date <= now <= coupon.end_date):
        return False
    return coupon.usage_limit is None or coupon.usage_limit > 0


def discount_amount(coupon_type: str, value, subtotal, max_discount=None) -> Decimal:
    """
    Discount for a coupon of the given type on subtotal

    - percentage: subtotal * value / 100, capped by max_discount
    - fixed: value, never more than the subtotal
    - free_shipping: 0 (the shipping cost is waived instead)
    """
    subtotal = to_decimal(subtotal)
    value = to_decimal(value)

    if coupon_type == PERCENTAGE:
        discount = subtotal * value / Decimal("100")
        if max_discount is not None:
            discount = min(discount, to_decimal(max_discount))
    elif coupon_type == FIXED:
        discount = min(value, subtotal)
    else:
        discount = ZERO

    return money(max(discount, ZERO))


def calculate_coupon_discount(coupon: Coupon, subtotal, now: Optional[datetime] = None) -> Decimal:
    """Zero when the coupon is invalid or the subtotal is below its minimum"""
    if not coupon_is_valid(coupon, now):
        return ZERO
    if to_decimal(subtotal) < to_decimal(coupon.min_purchase):
        return ZERO
    return discount_amount(coupon.type, coupon.value, subtotal, coupon.max_discount)


def coupon_applies_to_product(coupon: Coupon, product: Product) -> bool:
    """
    Explicit product list wins, then the exclusion list, then the
    category list. A coupon without scopes applies to everything.
    """
    if coupon.product_ids:
        return product.id in coupon.product_ids
    if coupon.excluded_product_ids and product.id in coupon.excluded_product_ids:
        return False
    if coupon.category_ids:
        return product.category_id in coupon.category_ids
    return True


def line_subtotal(lines: Iterable) -> Decimal:
    """Sum of price * quantity over cart or order lines"""
    return money(sum((to_decimal(line.price) * line.quantity for line in lines), ZERO))


def recalculate_cart(cart: Cart) -> Cart:
    """
    Refresh the denormalized cart totals

    subtotal = sum(price * quantity)
    tax      = (subtotal - discount) * tax_rate
    total    = subtotal - discount + tax + shipping_cost
    """
    subtotal = line_subtotal(cart.items)

    discount = ZERO
    shipping = money(cart.shipping_quote)
    if cart.coupon_code:
        discount = discount_amount(cart.coupon_type, cart.coupon_value, subtotal, cart.coupon_max_discount)
        if cart.coupon_type == FREE_SHIPPING:
            shipping = ZERO

    taxable = subtotal - discount
    tax = money(taxable * to_decimal(cart.tax_rate))

    cart.subtotal = subtotal
    cart.discount = discount
    cart.shipping_cost = money(shipping)
    cart.tax_amount = tax
    cart.total = money(taxable + tax + shipping)
    return cart


def order_total(subtotal, shipping, tax, discount) -> Decimal:
    """subtotal + shipping + tax - discount, never below zero"""
    total = to_decimal(subtotal) + to_decimal(shipping) + to_decimal(tax) - to_decimal(discount)
    return money(max(total, ZERO))
