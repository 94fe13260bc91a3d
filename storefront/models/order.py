"""
Order tables: orders, line items, status history and refunds
"""
from sqlalchemy import JSON, Column, DECIMAL, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from storefront.core.database import Base
from storefront.models.mixins import TimestampMixin, utcnow


class Order(TimestampMixin, Base):
    """
    Snapshot of the purchased items plus mutable status, payment and tracking
    """
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    order_number = Column(String(50), nullable=False, unique=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # Amounts
    subtotal = Column(DECIMAL(12, 2), nullable=False)
    discount_amount = Column(DECIMAL(12, 2), default=0, nullable=False)
    tax_rate = Column(DECIMAL(6, 4), default=0, nullable=False)
    tax_amount = Column(DECIMAL(12, 2), default=0, nullable=False)
    shipping_cost = Column(DECIMAL(12, 2), default=0, nullable=False)
    total = Column(DECIMAL(12, 2), nullable=False)

    # Coupon snapshot
    coupon_code = Column(String(50), index=True)
    coupon_type = Column(String(20))

    # Shipping
    shipping_method = Column(String(50), nullable=False, default="standard")
    shipping_address = Column(JSON, nullable=False)
    estimated_delivery = Column(DateTime)

    # Tracking
    tracking_carrier = Column(String(100))
    tracking_number = Column(String(100), index=True)
    tracking_url = Column(String(500))
    tracking_status = Column(String(50))
    tracking_updates = Column(JSON, default=list)

    # Payment
    payment_method = Column(String(20), nullable=False)
    payment_status = Column(String(20), nullable=False, default="pending", index=True)
    payment_transaction_id = Column(String(255))
    payment_amount = Column(DECIMAL(12, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="USD")

    # Status
    status = Column(String(20), nullable=False, default="pending", index=True)

    # Notes and request metadata
    customer_notes = Column(Text)
    admin_notes = Column(Text)
    ip_address = Column(String(50))
    user_agent = Column(Text)

    user = relationship("User", lazy="joined")
    items = relationship(
        "OrderItem", back_populates="order", cascade="all, delete-orphan", order_by="OrderItem.id"
    )
    status_history = relationship(
        "OrderStatus", back_populates="order", cascade="all, delete-orphan",
        order_by="OrderStatus.id.desc()"
    )
    refunds = relationship("Refund", back_populates="order", cascade="all, delete-orphan")

    @property
    def has_tracking(self) -> bool:
        return self.tracking_number is not None


class OrderItem(Base):
    """
    Product data is copied at purchase time
    """
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)

    name = Column(String(255), nullable=False)
    sku = Column(String(100))
    quantity = Column(Integer, nullable=False)
    price = Column(DECIMAL(12, 2), nullable=False)
    variant = Column(JSON)
    total = Column(DECIMAL(12, 2), nullable=False)

    order = relationship("Order", back_populates="items")


class OrderStatus(Base):
    """
    Status history of an order
    """
    __tablename__ = "order_status"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(String(20), nullable=False, index=True)
    notes = Column(Text)
    changed_by_id = Column(Integer, ForeignKey("users.id"))
    ip_address = Column(String(50))
    user_agent = Column(Text)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    order = relationship("Order", back_populates="status_history")


class Refund(TimestampMixin, Base):
    __tablename__ = "refunds"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = Column(DECIMAL(12, 2), nullable=False)
    reason = Column(Text, nullable=False)
    status = Column(String(20), nullable=False, default="pending", index=True)
    payment_method = Column(String(20), nullable=False)
    transaction_id = Column(String(255), index=True)
    processed_by_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    notes = Column(Text)

    order = relationship("Order", back_populates="refunds")
