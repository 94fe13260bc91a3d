"""
Product Repository - Data Access Layer for Products

Handles all catalog queries for products and returns ORM rows that
the API layer shapes with the Product domain models.
"""
from decimal import Decimal
from typing import Iterable, List, Optional, Tuple

from sqlalchemy import String, cast, func, or_
from sqlalchemy.orm import Session

from storefront.core.database import json_serializer
from storefront.models import Product
from storefront.utils import escape_like, page_offset


SORT_OPTIONS = {
    "price-asc": (Product.price.asc(), Product.id.asc()),
    "price-desc": (Product.price.desc(), Product.id.desc()),
    "rating": (Product.rating_average.desc(), Product.rating_count.desc(), Product.id.desc()),
    "newest": (Product.created_at.desc(), Product.id.desc()),
}


class ProductRepository:
    """
    Repository for Product data access

    All queries for products are centralized here. Public lookups only
    return active products; admin lookups use find_by_id.
    """

    def __init__(self, db: Session):
        self.db = db

    def find_by_id(self, product_id: int) -> Optional[Product]:
        return self.db.get(Product, product_id)

    def find_active(self, id_or_slug: str) -> Optional[Product]:
        """
        Find an active product by numeric ID or slug

        Args:
            id_or_slug: "42" or "running-shoes"

        Returns:
            Product or None if not found/inactive
        """
        query = self.db.query(Product).filter(Product.is_active.is_(True))
        if str(id_or_slug).isdigit():
            product = query.filter(Product.id == int(id_or_slug)).first()
            if product:
                return product
        return query.filter(Product.slug == str(id_or_slug)).first()

    def find_many(self, product_ids: Iterable[int]) -> List[Product]:
        ids = list(set(product_ids))
        if not ids:
            return []
        return self.db.query(Product).filter(Product.id.in_(ids)).all()

    def find_all(
        self,
        category_ids: Optional[List[int]] = None,
        brand_id: Optional[int] = None,
        min_price: Optional[Decimal] = None,
        max_price: Optional[Decimal] = None,
        search: Optional[str] = None,
        tags: Optional[List[str]] = None,
        featured: Optional[bool] = None,
        sort: str = "newest",
        page: int = 1,
        limit: int = 20,
    ) -> Tuple[List[Product], int]:
        """
        Find active products with filters

        Args:
            category_ids: Restrict to these categories
            brand_id: Restrict to one brand
            min_price/max_price: Inclusive price bounds
            search: Case-insensitive match on name, description or SKU
            tags: Products carrying any of these tags
            sort: price-asc | price-desc | rating | newest
            page/limit: Pagination

        Returns:
            Tuple of (list of products, total count)
        """
        query = self.db.query(Product).filter(Product.is_active.is_(True))

        if category_ids:
            query = query.filter(Product.category_id.in_(category_ids))

        if brand_id is not None:
            query = query.filter(Product.brand_id == brand_id)

        if min_price is not None:
            query = query.filter(Product.price >= min_price)

        if max_price is not None:
            query = query.filter(Product.price <= max_price)

        if search:
            term = f"%{escape_like(search.lower())}%"
            query = query.filter(or_(
                func.lower(Product.name).like(term, escape="\\"),
                func.lower(Product.description).like(term, escape="\\"),
                func.lower(Product.sku).like(term, escape="\\"),
            ))

        if tags:
            # Match each tag as a quoted element of the stored JSON text
            tags_text = cast(Product.tags, String)
            query = query.filter(or_(*[
                tags_text.like(f"%{escape_like(json_serializer(tag))}%", escape="\\")
                for tag in tags
            ]))

        if featured is not None:
            query = query.filter(Product.featured.is_(featured))

        total = query.count()
        products = (
            query.order_by(*SORT_OPTIONS.get(sort, SORT_OPTIONS["newest"]))
            .offset(page_offset(page, limit))
            .limit(limit)
            .all()
        )
        return products, total

    def featured(self, limit: int = 8) -> List[Product]:
        return (
            self.db.query(Product)
            .filter(Product.is_active.is_(True), Product.featured.is_(True))
            .order_by(Product.created_at.desc(), Product.id.desc())
            .limit(limit)
            .all()
        )

    def new_arrivals(self, limit: int = 8) -> List[Product]:
        return (
            self.db.query(Product)
            .filter(Product.is_active.is_(True))
            .order_by(Product.created_at.desc(), Product.id.desc())
            .limit(limit)
            .all()
        )

    def similar(self, product: Product, limit: int = 4) -> List[Product]:
        """Other active products in the same category"""
        return (
            self.db.query(Product)
            .filter(
                Product.is_active.is_(True),
                Product.category_id == product.category_id,
                Product.id != product.id,
            )
            .order_by(Product.rating_average.desc(), Product.id.desc())
            .limit(limit)
            .all()
        )

    def slug_taken(self, slug: str, exclude_id: Optional[int] = None) -> bool:
        query = self.db.query(Product.id).filter(Product.slug == slug)
        if exclude_id is not None:
            query = query.filter(Product.id != exclude_id)
        return query.first() is not None

    def sku_taken(self, sku: str, exclude_id: Optional[int] = None) -> bool:
        query = self.db.query(Product.id).filter(Product.sku == sku)
        if exclude_id is not None:
            query = query.filter(Product.id != exclude_id)
        return query.first() is not None

    def count_active(self, category_ids: Optional[List[int]] = None, brand_id: Optional[int] = None) -> int:
        query = self.db.query(Product).filter(Product.is_active.is_(True))
        if category_ids is not None:
            query = query.filter(Product.category_id.in_(category_ids))
        if brand_id is not None:
            query = query.filter(Product.brand_id == brand_id)
        return query.count()

    def count(self) -> int:
        return self.db.query(Product).count()

    def top_rated(self, limit: int = 5) -> List[Product]:
        return (
            self.db.query(Product)
            .filter(Product.is_active.is_(True))
            .order_by(Product.rating_average.desc(), Product.rating_count.desc(), Product.id)
            .limit(limit)
            .all()
        )

    def low_stock(self, threshold: int) -> List[Product]:
        return (
            self.db.query(Product)
            .filter(Product.is_active.is_(True), Product.stock <= threshold)
            .order_by(Product.stock, Product.name)
            .all()
        )

    def add(self, product: Product) -> Product:
        self.db.add(product)
        self.db.flush()
        return product
