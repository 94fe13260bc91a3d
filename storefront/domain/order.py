"""
Order Domain Models

Represents order-related entities: checkout payloads, admin updates
and the order representation with items, history and refunds.
"""
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .base import DomainModel
from .cart import ShippingAddress
from .catalog import VariantChoice


class OrderStatusEnum(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"
    FAILED = "failed"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


class PaymentMethod(str, Enum):
    CREDIT_CARD = "credit_card"
    PAYPAL = "paypal"
    STRIPE = "stripe"
    BANK_TRANSFER = "bank_transfer"


class OrderItemRequest(BaseModel):
    product_id: int
    quantity: int = Field(..., ge=1)
    variant: Optional[VariantChoice] = None


class OrderCreate(BaseModel):
    """
    Checkout payload

    When items is omitted the order is built from the user's cart
    and the cart is cleared afterwards.
    """

    model_config = ConfigDict(use_enum_values=True)

    items: Optional[List[OrderItemRequest]] = Field(None, min_length=1)
    shipping_address: ShippingAddress
    shipping_method: str = Field("standard", min_length=1, max_length=50)
    payment_method: PaymentMethod
    coupon_code: Optional[str] = Field(None, max_length=50)
    notes: Optional[str] = Field(None, max_length=2000)


class OrderStatusUpdate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    status: OrderStatusEnum
    notes: Optional[str] = None


class PaymentUpdate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    status: PaymentStatus
    transaction_id: Optional[str] = Field(None, max_length=255)


class TrackingCreate(BaseModel):
    carrier: str = Field(..., min_length=1, max_length=100)
    tracking_number: str = Field(..., min_length=1, max_length=100)
    url: Optional[str] = Field(None, max_length=500)


class TrackingUpdate(BaseModel):
    status: str = Field(..., min_length=1, max_length=50)
    location: Optional[str] = None
    description: Optional[str] = None


class RefundRequest(BaseModel):
    amount: Decimal = Field(..., gt=0)
    reason: str = Field(..., min_length=1)


class OrderItemResponse(DomainModel):
    id: int
    product_id: int
    name: str
    sku: Optional[str] = None
    quantity: int
    price: Decimal
    variant: Optional[Dict[str, Any]] = None
    total: Decimal


class StatusHistoryResponse(DomainModel):
    id: int
    status: str
    notes: Optional[str] = None
    changed_by_id: Optional[int] = None
    created_at: datetime


class RefundResponse(DomainModel):
    id: int
    amount: Decimal
    reason: str
    status: str
    payment_method: str
    transaction_id: Optional[str] = None
    processed_by_id: int
    created_at: datetime


class OrderResponse(DomainModel):
    """
    Order domain model - represents a customer order

    Fields:
        subtotal: Sum of line totals
        discount_amount: Coupon discount
        tax_rate/tax_amount: Tax applied on (subtotal - discount)
        shipping_cost: Zero for free_shipping coupons
        total: subtotal + shipping + tax - discount, never negative
        status_history: Newest first
    """

    id: int
    order_number: str
    user_id: int
    items: List[OrderItemResponse] = Field(default_factory=list)

    subtotal: Decimal
    discount_amount: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    shipping_cost: Decimal
    total: Decimal
    currency: str

    coupon_code: Optional[str] = None
    coupon_type: Optional[str] = None

    shipping_method: str
    shipping_address: Dict[str, Any]
    estimated_delivery: Optional[datetime] = None

    tracking_carrier: Optional[str] = None
    tracking_number: Optional[str] = None
    tracking_url: Optional[str] = None
    tracking_status: Optional[str] = None
    tracking_updates: Optional[List[Dict[str, Any]]] = None

    payment_method: str
    payment_status: str
    payment_transaction_id: Optional[str] = None
    payment_amount: Decimal

    status: str
    customer_notes: Optional[str] = None
    admin_notes: Optional[str] = None

    status_history: List[StatusHistoryResponse] = Field(default_factory=list)
    refunds: List[RefundResponse] = Field(default_factory=list)

    created_at: datetime
    updated_at: Optional[datetime] = None
