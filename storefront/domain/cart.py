"""
Cart Domain Models
"""
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from .base import DomainModel
from .catalog import VariantChoice


class CartItemAdd(BaseModel):
    product_id: int
    quantity: int = Field(1, ge=1)
    variant: Optional[VariantChoice] = None


class CartItemUpdate(BaseModel):
    quantity: int = Field(..., ge=1)


class ApplyCouponRequest(BaseModel):
    code: str = Field(..., min_length=1, max_length=50)


class ShippingAddress(BaseModel):
    street: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)
    zip_code: str = Field(..., min_length=1)
    country: str = Field(..., min_length=1)
    name: Optional[str] = None
    phone: Optional[str] = None


class ShippingRequest(BaseModel):
    method: str = Field("standard", min_length=1, max_length=50)
    address: ShippingAddress


class CartProduct(DomainModel):
    id: int
    name: str
    slug: str
    price: Decimal
    stock: int
    images: Optional[List[Any]] = None


class CartItemResponse(DomainModel):
    id: int
    product_id: int
    product: Optional[CartProduct] = None
    quantity: int
    price: Decimal
    variant: Optional[Dict[str, Any]] = None
    added_at: datetime

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["total"] = float(self.line_total)
        return data


class CartResponse(DomainModel):
    """
    Cart with denormalized totals

    tax_rate is a fraction (0.08 == 8%).
    """

    id: Optional[int] = None
    items: List[CartItemResponse] = Field(default_factory=list)
    item_count: int = 0
    coupon_code: Optional[str] = None
    coupon_type: Optional[str] = None
    shipping_method: Optional[str] = None
    shipping_address: Optional[Dict[str, Any]] = None
    shipping_cost: Decimal = Decimal("0")
    tax_rate: Decimal = Decimal("0")
    subtotal: Decimal = Decimal("0")
    discount: Decimal = Decimal("0")
    tax_amount: Decimal = Decimal("0")
    total: Decimal = Decimal("0")

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["items"] = [item.to_dict() for item in self.items]
        return data
