"""
Cart Repository - Data Access Layer for Carts
"""
from typing import Optional

from sqlalchemy.orm import Session

from storefront.models import Cart, CartItem


class CartRepository:
    """One cart per user, created lazily"""

    def __init__(self, db: Session):
        self.db = db

    def find_for_user(self, user_id: int) -> Optional[Cart]:
        return self.db.query(Cart).filter(Cart.user_id == user_id).first()

    def get_or_create(self, user_id: int) -> Cart:
        cart = self.find_for_user(user_id)
        if cart is None:
            cart = Cart(
                user_id=user_id,
                shipping_quote=0,
                shipping_cost=0,
                tax_rate=0,
                subtotal=0,
                discount=0,
                tax_amount=0,
                total=0,
            )
            self.db.add(cart)
            self.db.flush()
        return cart

    @staticmethod
    def find_item(cart: Cart, product_id: int, variant: Optional[dict] = None) -> Optional[CartItem]:
        """
        Line for product_id; when variant is given the variant must match too
        """
        for item in cart.items:
            if item.product_id != product_id:
                continue
            if variant is None or (item.variant or None) == (variant or None):
                return item
        return None
