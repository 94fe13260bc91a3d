"""
Coupon Domain Models
"""
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .base import DomainModel


class CouponType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"
    FREE_SHIPPING = "free_shipping"


class CouponCreate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    code: str = Field(..., min_length=3, max_length=50)
    type: CouponType
    value: Decimal = Field(..., ge=0)
    min_purchase: Decimal = Field(Decimal("0"), ge=0)
    max_discount: Optional[Decimal] = Field(None, ge=0, description="Cap for percentage coupons")
    start_date: datetime
    end_date: datetime
    usage_limit: Optional[int] = Field(None, ge=0, description="Remaining redemptions, null for unlimited")
    per_user_limit: Optional[int] = Field(1, ge=1, description="Redemptions per user, null for unlimited")
    category_ids: List[int] = Field(default_factory=list)
    product_ids: List[int] = Field(default_factory=list)
    excluded_product_ids: List[int] = Field(default_factory=list)
    description: Optional[str] = None

    @field_validator("code")
    @classmethod
    def normalize_code(cls, v: str) -> str:
        return v.strip().upper()

    @model_validator(mode="after")
    def check_window_and_value(self):
        if self.end_date <= self.start_date:
            raise ValueError("end_date must be after start_date")
        if self.type == CouponType.PERCENTAGE and self.value > 100:
            raise ValueError("Percentage value cannot exceed 100")
        return self


class CouponUpdate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    code: Optional[str] = Field(None, min_length=3, max_length=50)
    type: Optional[CouponType] = None
    value: Optional[Decimal] = Field(None, ge=0)
    min_purchase: Optional[Decimal] = Field(None, ge=0)
    max_discount: Optional[Decimal] = Field(None, ge=0)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    usage_limit: Optional[int] = Field(None, ge=0)
    per_user_limit: Optional[int] = Field(None, ge=1)
    category_ids: Optional[List[int]] = None
    product_ids: Optional[List[int]] = None
    excluded_product_ids: Optional[List[int]] = None
    description: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("code")
    @classmethod
    def normalize_code(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().upper() if v else v


class CouponValidateRequest(BaseModel):
    code: str = Field(..., min_length=1)
    subtotal: Decimal = Field(..., ge=0)
    product_ids: List[int] = Field(default_factory=list)


class CouponResponse(DomainModel):
    id: int
    code: str
    type: str
    value: Decimal
    min_purchase: Decimal
    max_discount: Optional[Decimal] = None
    start_date: datetime
    end_date: datetime
    usage_limit: Optional[int] = None
    per_user_limit: Optional[int] = None
    category_ids: Optional[List[int]] = None
    product_ids: Optional[List[int]] = None
    excluded_product_ids: Optional[List[int]] = None
    description: Optional[str] = None
    is_active: bool
    created_at: datetime


class PublicCouponResponse(DomainModel):
    """What shoppers see on the active coupons listing"""

    code: str
    type: str
    value: Decimal
    min_purchase: Decimal
    max_discount: Optional[Decimal] = None
    end_date: datetime
    description: Optional[str] = None
