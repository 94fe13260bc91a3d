"""
Catalog tables: brands, categories and products
"""
from sqlalchemy import (
    JSON, Boolean, Column, DECIMAL, Float, ForeignKey, Integer, String, Table, Text,
)
from sqlalchemy.orm import relationship

from storefront.core.database import Base
from storefront.models.mixins import SoftDeleteMixin, TimestampMixin


brand_categories = Table(
    "brand_categories",
    Base.metadata,
    Column("brand_id", Integer, ForeignKey("brands.id", ondelete="CASCADE"), primary_key=True),
    Column("category_id", Integer, ForeignKey("categories.id", ondelete="CASCADE"), primary_key=True),
)


def empty_distribution():
    return {"1": 0, "2": 0, "3": 0, "4": 0, "5": 0}


class Brand(TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "brands"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, unique=True)
    slug = Column(String(255), nullable=False, unique=True, index=True)
    description = Column(Text)
    logo = Column(JSON)    # {"url": ..., "alt": ...}
    banner = Column(JSON)
    website = Column(String(255))
    social_media = Column(JSON, default=dict)
    featured = Column(Boolean, default=False, nullable=False, index=True)
    sort_order = Column(Integer, default=0, nullable=False)
    meta = Column(JSON, default=dict)

    categories = relationship("Category", secondary=brand_categories, lazy="selectin")
    products = relationship("Product", back_populates="brand")


class Category(TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, unique=True)
    slug = Column(String(255), nullable=False, unique=True, index=True)
    description = Column(Text)
    parent_id = Column(Integer, ForeignKey("categories.id"), index=True)
    level = Column(Integer, default=1, nullable=False, index=True)
    image = Column(JSON)
    icon = Column(String(50), default="fa-box")
    attributes = Column(JSON, default=list)
    filters = Column(JSON, default=list)
    featured = Column(Boolean, default=False, nullable=False, index=True)
    sort_order = Column(Integer, default=0, nullable=False)
    meta = Column(JSON, default=dict)

    parent = relationship("Category", remote_side=[id], back_populates="children")
    children = relationship("Category", back_populates="parent", order_by="[Category.sort_order, Category.name]")
    products = relationship("Product", back_populates="category")


class Product(TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, index=True)
    slug = Column(String(255), nullable=False, unique=True, index=True)
    description = Column(Text, nullable=False)

    brand_id = Column(Integer, ForeignKey("brands.id"), nullable=False, index=True)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False, index=True)

    # Pricing
    price = Column(DECIMAL(12, 2), nullable=False, index=True)
    compare_price = Column(DECIMAL(12, 2))
    cost = Column(DECIMAL(12, 2))

    # Identification
    sku = Column(String(100), unique=True)
    barcode = Column(String(100), unique=True)

    # Inventory and shipping
    stock = Column(Integer, default=0, nullable=False)
    weight_value = Column(Float)
    weight_unit = Column(String(5), default="g")
    dimensions = Column(JSON)
    requires_shipping = Column(Boolean, default=True, nullable=False)
    is_digital = Column(Boolean, default=False, nullable=False)

    # Content
    images = Column(JSON, default=list)
    videos = Column(JSON, default=list)
    features = Column(JSON, default=list)
    specifications = Column(JSON, default=list)
    attributes = Column(JSON, default=list)
    variants = Column(JSON, default=list)
    tags = Column(JSON, default=list)
    meta = Column(JSON, default=dict)
    warranty = Column(JSON)
    featured = Column(Boolean, default=False, nullable=False, index=True)

    # Ratings (recomputed from reviews)
    rating_average = Column(Float, default=0, nullable=False, index=True)
    rating_count = Column(Integer, default=0, nullable=False)
    rating_distribution = Column(JSON, default=empty_distribution)

    # Stats (recomputed from delivered orders)
    views = Column(Integer, default=0, nullable=False)
    sales = Column(Integer, default=0, nullable=False, index=True)
    revenue = Column(DECIMAL(12, 2), default=0, nullable=False)

    brand = relationship("Brand", back_populates="products", lazy="joined")
    category = relationship("Category", back_populates="products", lazy="joined")

    def check_stock(self, quantity: int = 1) -> bool:
        return self.stock >= quantity
