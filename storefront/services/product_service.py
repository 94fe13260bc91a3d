"""
Product Service
Admin product management, stock adjustments and recomputed product stats
"""
import logging
from decimal import Decimal
from typing import Iterable, List

from sqlalchemy.orm import Session

from storefront.core.errors import ConflictError, NotFoundError, ValidationFailed
from storefront.domain.catalog import ProductCreate, ProductUpdate
from storefront.models import Product
from storefront.repositories import (
    BrandRepository,
    CategoryRepository,
    OrderRepository,
    ProductRepository,
)
from storefront.services.pricing import money
from storefront.utils import slugify

logger = logging.getLogger(__name__)

COMPARE_PRICE_MARKUP = Decimal("1.2")


class ProductService:

    def __init__(self, db: Session):
        self.db = db
        self.products = ProductRepository(db)
        self.brands = BrandRepository(db)
        self.categories = CategoryRepository(db)

    def get_active(self, id_or_slug: str) -> Product:
        product = self.products.find_active(id_or_slug)
        if product is None:
            raise NotFoundError("Product not found")
        return product

    def get(self, product_id: int) -> Product:
        product = self.products.find_by_id(product_id)
        if product is None:
            raise NotFoundError("Product not found")
        return product

    def view(self, id_or_slug: str) -> Product:
        """Public product page; counts a view"""
        product = self.get_active(id_or_slug)
        product.views = (product.views or 0) + 1
        self.db.commit()
        self.db.refresh(product)
        return product

    def _check_references(self, brand_id=None, category_id=None):
        if brand_id is not None:
            brand = self.brands.find_by_id(brand_id)
            if brand is None or not brand.is_active:
                raise ValidationFailed("Invalid brand")
        if category_id is not None:
            category = self.categories.find_by_id(category_id)
            if category is None or not category.is_active:
                raise ValidationFailed("Invalid category")

    def _check_unique(self, slug=None, sku=None, exclude_id=None):
        if slug and self.products.slug_taken(slug, exclude_id):
            raise ConflictError("Product with this slug already exists")
        if sku and self.products.sku_taken(sku, exclude_id):
            raise ConflictError("Product with this SKU already exists")

    def create(self, data: ProductCreate) -> Product:
        """
        Create a product

        The slug is generated from the name when omitted and
        compare_price defaults to price * 1.2.
        """
        self._check_references(data.brand_id, data.category_id)

        slug = slugify(data.slug or data.name)
        if not slug:
            raise ValidationFailed("Product name must contain letters or digits")
        self._check_unique(slug=slug, sku=data.sku)

        values = data.model_dump(exclude={"slug"})
        if values["compare_price"] is None:
            values["compare_price"] = money(data.price * COMPARE_PRICE_MARKUP)

        product = Product(slug=slug, **values)
        self.products.add(product)
        self.db.commit()
        self.db.refresh(product)

        logger.info(f"Product created: {product.id} ({product.slug})")
        return product

    def update(self, product_id: int, data: ProductUpdate) -> Product:
        product = self.get(product_id)
        changes = data.model_dump(exclude_unset=True)

        self._check_references(changes.get("brand_id"), changes.get("category_id"))

        if changes.get("slug"):
            changes["slug"] = slugify(changes["slug"])
        elif changes.get("name") and "slug" not in changes:
            changes["slug"] = slugify(changes["name"])
        else:
            changes.pop("slug", None)

        self._check_unique(slug=changes.get("slug"), sku=changes.get("sku"), exclude_id=product.id)

        for field, value in changes.items():
            if value is None and field in ("name", "description", "brand_id", "category_id", "price", "stock"):
                continue
            setattr(product, field, value)

        if changes.get("is_active") is True:
            product.deleted_at = None

        self.db.commit()
        self.db.refresh(product)
        logger.info(f"Product updated: {product.id}")
        return product

    def delete(self, product_id: int) -> None:
        product = self.get(product_id)
        product.soft_delete()
        self.db.commit()
        logger.info(f"Product deactivated: {product.id}")

    def adjust_stock(self, product_id: int, delta: int) -> Product:
        product = self.get(product_id)
        new_stock = product.stock + delta
        if new_stock < 0:
            raise ValidationFailed("Insufficient stock")

        product.stock = new_stock
        self.db.commit()
        self.db.refresh(product)
        return product

    def by_category(self, category_id: int, page: int = 1, limit: int = 20, sort: str = "newest"):
        """Active products of the category and all its descendants"""
        category = self.categories.find(category_id)
        if category is None:
            raise NotFoundError("Category not found")
        ids = self.categories.descendant_ids(category.id)
        return self.products.find_all(category_ids=ids, sort=sort, page=page, limit=limit)

    def refresh_sales_stats(self, product_ids: Iterable[int]) -> List[Product]:
        """
        Recompute sales and revenue from delivered orders

        Does not commit; called inside the order status transaction.
        """
        self.db.flush()
        ids = list(set(product_ids))
        totals = OrderRepository(self.db).delivered_product_totals(ids)
        products = self.products.find_many(ids)
        for product in products:
            quantity, revenue = totals.get(product.id, (0, 0))
            product.sales = int(quantity or 0)
            product.revenue = money(revenue)
        return products
