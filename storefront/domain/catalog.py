"""
Catalog Domain Models

Brands, categories and products: admin payloads and the
representations returned by the catalog endpoints.
"""
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, model_validator

from .base import DomainModel


class ImageRef(BaseModel):
    """Hosted image (URL only, uploads are handled elsewhere)"""

    url: str = Field(..., min_length=1)
    alt: Optional[str] = None


class Specification(BaseModel):
    name: str
    value: str


class Variant(BaseModel):
    name: str = Field(..., description="Variant dimension, e.g. Color")
    options: List[str] = Field(default_factory=list)


class VariantChoice(BaseModel):
    """Selected variant on a cart or order line"""

    name: str
    option: str


class Dimensions(BaseModel):
    length: Optional[float] = Field(None, ge=0)
    width: Optional[float] = Field(None, ge=0)
    height: Optional[float] = Field(None, ge=0)
    unit: str = "cm"


class ReorderItem(BaseModel):
    id: int
    order: int


# ============================================================================
# Brands
# ============================================================================

class BrandCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    slug: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    logo: Optional[ImageRef] = None
    banner: Optional[ImageRef] = None
    website: Optional[str] = Field(None, max_length=255)
    social_media: Dict[str, str] = Field(default_factory=dict)
    category_ids: List[int] = Field(default_factory=list)
    featured: bool = False
    sort_order: int = 0
    meta: Dict[str, Any] = Field(default_factory=dict)


class BrandUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    slug: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    logo: Optional[ImageRef] = None
    banner: Optional[ImageRef] = None
    website: Optional[str] = Field(None, max_length=255)
    social_media: Optional[Dict[str, str]] = None
    category_ids: Optional[List[int]] = None
    featured: Optional[bool] = None
    sort_order: Optional[int] = None
    meta: Optional[Dict[str, Any]] = None
    is_active: Optional[bool] = None


class BrandSummary(DomainModel):
    id: int
    name: str
    slug: str


class CategorySummary(DomainModel):
    id: int
    name: str
    slug: str


class BrandResponse(DomainModel):
    id: int
    name: str
    slug: str
    description: Optional[str] = None
    logo: Optional[Dict[str, Any]] = None
    banner: Optional[Dict[str, Any]] = None
    website: Optional[str] = None
    social_media: Optional[Dict[str, Any]] = None
    categories: List[CategorySummary] = Field(default_factory=list)
    featured: bool
    sort_order: int
    meta: Optional[Dict[str, Any]] = None
    is_active: bool
    created_at: datetime


# ============================================================================
# Categories
# ============================================================================

class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    slug: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    parent_id: Optional[int] = None
    image: Optional[ImageRef] = None
    icon: Optional[str] = Field(None, max_length=50)
    attributes: List[Dict[str, Any]] = Field(default_factory=list)
    filters: List[Dict[str, Any]] = Field(default_factory=list)
    featured: bool = False
    sort_order: int = 0
    meta: Dict[str, Any] = Field(default_factory=dict)


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    slug: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    parent_id: Optional[int] = None
    image: Optional[ImageRef] = None
    icon: Optional[str] = Field(None, max_length=50)
    attributes: Optional[List[Dict[str, Any]]] = None
    filters: Optional[List[Dict[str, Any]]] = None
    featured: Optional[bool] = None
    sort_order: Optional[int] = None
    meta: Optional[Dict[str, Any]] = None
    is_active: Optional[bool] = None


class CategoryResponse(DomainModel):
    id: int
    name: str
    slug: str
    description: Optional[str] = None
    parent_id: Optional[int] = None
    level: int
    image: Optional[Dict[str, Any]] = None
    icon: Optional[str] = None
    attributes: Optional[List[Any]] = None
    filters: Optional[List[Any]] = None
    featured: bool
    sort_order: int
    meta: Optional[Dict[str, Any]] = None
    is_active: bool
    created_at: datetime


# ============================================================================
# Products
# ============================================================================

class ProductCreate(BaseModel):
    """
    Admin payload for a new product

    compare_price defaults to price * 1.2 when omitted.
    """

    name: str = Field(..., min_length=1, max_length=255)
    slug: Optional[str] = Field(None, max_length=255)
    description: str = Field(..., min_length=1)
    brand_id: int
    category_id: int

    price: Decimal = Field(..., ge=0, description="Selling price")
    compare_price: Optional[Decimal] = Field(None, ge=0, description="Strike-through price")
    cost: Optional[Decimal] = Field(None, ge=0)

    sku: Optional[str] = Field(None, max_length=100)
    barcode: Optional[str] = Field(None, max_length=100)
    stock: int = Field(0, ge=0)

    weight_value: Optional[float] = Field(None, ge=0)
    weight_unit: str = Field("g", pattern="^(g|kg|lb|oz)$")
    dimensions: Optional[Dimensions] = None
    requires_shipping: bool = True
    is_digital: bool = False

    images: List[ImageRef] = Field(default_factory=list)
    videos: List[Dict[str, Any]] = Field(default_factory=list)
    features: List[str] = Field(default_factory=list)
    specifications: List[Specification] = Field(default_factory=list)
    attributes: List[Dict[str, Any]] = Field(default_factory=list)
    variants: List[Variant] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    meta: Dict[str, Any] = Field(default_factory=dict)
    warranty: Optional[Dict[str, Any]] = None
    featured: bool = False


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    slug: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = Field(None, min_length=1)
    brand_id: Optional[int] = None
    category_id: Optional[int] = None
    price: Optional[Decimal] = Field(None, ge=0)
    compare_price: Optional[Decimal] = Field(None, ge=0)
    cost: Optional[Decimal] = Field(None, ge=0)
    sku: Optional[str] = Field(None, max_length=100)
    barcode: Optional[str] = Field(None, max_length=100)
    stock: Optional[int] = Field(None, ge=0)
    weight_value: Optional[float] = Field(None, ge=0)
    weight_unit: Optional[str] = Field(None, pattern="^(g|kg|lb|oz)$")
    dimensions: Optional[Dimensions] = None
    requires_shipping: Optional[bool] = None
    is_digital: Optional[bool] = None
    images: Optional[List[ImageRef]] = None
    videos: Optional[List[Dict[str, Any]]] = None
    features: Optional[List[str]] = None
    specifications: Optional[List[Specification]] = None
    attributes: Optional[List[Dict[str, Any]]] = None
    variants: Optional[List[Variant]] = None
    tags: Optional[List[str]] = None
    meta: Optional[Dict[str, Any]] = None
    warranty: Optional[Dict[str, Any]] = None
    featured: Optional[bool] = None
    is_active: Optional[bool] = None


class StockAdjustment(BaseModel):
    """Positive to receive stock, negative to remove it"""

    delta: int

    @model_validator(mode="after")
    def non_zero(self):
        if self.delta == 0:
            raise ValueError("delta must not be zero")
        return self


class ProductResponse(DomainModel):
    """
    Product as returned by the catalog endpoints

    Fields:
        rating_average/rating_count/rating_distribution: recomputed from reviews
        views/sales/revenue: recomputed from delivered orders
    """

    id: int
    name: str
    slug: str
    description: str
    brand: Optional[BrandSummary] = None
    category: Optional[CategorySummary] = None

    price: Decimal
    compare_price: Optional[Decimal] = None
    sku: Optional[str] = None
    barcode: Optional[str] = None
    stock: int

    weight_value: Optional[float] = None
    weight_unit: Optional[str] = None
    dimensions: Optional[Dict[str, Any]] = None
    requires_shipping: bool
    is_digital: bool

    images: Optional[List[Any]] = None
    videos: Optional[List[Any]] = None
    features: Optional[List[Any]] = None
    specifications: Optional[List[Any]] = None
    attributes: Optional[List[Any]] = None
    variants: Optional[List[Any]] = None
    tags: Optional[List[str]] = None
    meta: Optional[Dict[str, Any]] = None
    warranty: Optional[Dict[str, Any]] = None
    featured: bool

    rating_average: float
    rating_count: int
    rating_distribution: Optional[Dict[str, int]] = None

    views: int
    sales: int
    revenue: Decimal

    is_active: bool
    created_at: datetime
    updated_at: Optional[datetime] = None

    @property
    def in_stock(self) -> bool:
        return self.stock > 0

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["in_stock"] = self.in_stock
        return data
