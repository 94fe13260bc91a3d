"""
Shopping cart tables
"""
from sqlalchemy import JSON, Column, DECIMAL, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from storefront.core.database import Base
from storefront.models.mixins import TimestampMixin, utcnow


class Cart(TimestampMixin, Base):
    """
    One cart per user, created on first use.
    Totals are denormalized and recalculated on every mutation.
    """
    __tablename__ = "carts"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)

    # Coupon snapshot
    coupon_code = Column(String(50))
    coupon_type = Column(String(20))
    coupon_value = Column(DECIMAL(12, 2))
    coupon_max_discount = Column(DECIMAL(12, 2))

    # Shipping and tax
    shipping_method = Column(String(50))
    shipping_quote = Column(DECIMAL(12, 2), default=0, nullable=False)  # as quoted by the rates API
    shipping_cost = Column(DECIMAL(12, 2), default=0, nullable=False)   # after free_shipping coupons
    shipping_address = Column(JSON)
    tax_rate = Column(DECIMAL(6, 4), default=0, nullable=False)

    # Totals
    subtotal = Column(DECIMAL(12, 2), default=0, nullable=False)
    discount = Column(DECIMAL(12, 2), default=0, nullable=False)
    tax_amount = Column(DECIMAL(12, 2), default=0, nullable=False)
    total = Column(DECIMAL(12, 2), default=0, nullable=False)

    items = relationship(
        "CartItem", back_populates="cart", cascade="all, delete-orphan", order_by="CartItem.id"
    )

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)


class CartItem(Base):
    __tablename__ = "cart_items"

    id = Column(Integer, primary_key=True, index=True)
    cart_id = Column(Integer, ForeignKey("carts.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)

    quantity = Column(Integer, nullable=False)
    price = Column(DECIMAL(12, 2), nullable=False)
    variant = Column(JSON)  # {"name": "Color", "option": "Red"}
    added_at = Column(DateTime, default=utcnow, nullable=False)

    cart = relationship("Cart", back_populates="items")
    product = relationship("Product", lazy="joined")
