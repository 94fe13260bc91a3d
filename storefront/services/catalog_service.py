"""
Category and Brand Services
Category tree maintenance (levels, breadcrumbs, paths) and brand management
"""
import logging
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from storefront.core.errors import ConflictError, NotFoundError, ValidationFailed
from storefront.domain.catalog import (
    BrandCreate,
    BrandUpdate,
    CategoryCreate,
    CategoryResponse,
    CategorySummary,
    CategoryUpdate,
    ReorderItem,
)
from storefront.models import Brand, Category
from storefront.repositories import BrandRepository, CategoryRepository, ProductRepository
from storefront.utils import slugify

logger = logging.getLogger(__name__)


class CategoryService:
    """
    Categories form a tree through parent_id.

    level is parent.level + 1 (roots are level 1) and is kept in sync
    for descendants when a category moves.
    """

    def __init__(self, db: Session):
        self.db = db
        self.categories = CategoryRepository(db)
        self.products = ProductRepository(db)

    def get(self, id_or_slug, active_only: bool = True) -> Category:
        category = self.categories.find(id_or_slug, active_only=active_only)
        if category is None:
            raise NotFoundError("Category not found")
        return category

    # ------------------------------------------------------------------
    # Tree helpers
    # ------------------------------------------------------------------

    @staticmethod
    def ancestors(category: Category) -> List[Category]:
        """Root first, excluding the category itself"""
        chain = []
        seen = {category.id}
        parent = category.parent
        while parent is not None and parent.id not in seen:
            chain.append(parent)
            seen.add(parent.id)
            parent = parent.parent
        return list(reversed(chain))

    def breadcrumb(self, category: Category) -> List[dict]:
        return [CategorySummary.model_validate(node).to_dict() for node in self.ancestors(category) + [category]]

    def path(self, category: Category) -> str:
        return "/".join(node.slug for node in self.ancestors(category) + [category])

    def detail(self, category: Category) -> dict:
        """Category with breadcrumb, active children, product count and path"""
        data = CategoryResponse.model_validate(category).to_dict()
        data["breadcrumb"] = self.breadcrumb(category)
        data["children"] = [
            CategoryResponse.model_validate(child).to_dict()
            for child in self.categories.active_children(category.id)
        ]
        data["product_count"] = self.products.count_active(category_ids=[category.id])
        data["path"] = self.path(category)
        return data

    def tree(self) -> List[dict]:
        """Nested active categories from the roots, ordered by (sort_order, name)"""
        categories = self.categories.all_active()
        by_parent: Dict[Optional[int], List[Category]] = {}
        for category in categories:
            by_parent.setdefault(category.parent_id, []).append(category)

        def build(parent_id):
            nodes = []
            for category in by_parent.get(parent_id, []):
                node = CategoryResponse.model_validate(category).to_dict()
                node["children"] = build(category.id)
                nodes.append(node)
            return nodes

        return build(None)

    def _relevel_descendants(self, category: Category):
        for child in category.children:
            child.level = category.level + 1
            self._relevel_descendants(child)

    def _resolve_parent(self, parent_id: Optional[int], category: Category = None) -> Optional[Category]:
        if parent_id is None:
            return None

        parent = self.categories.find_by_id(parent_id)
        if parent is None or not parent.is_active:
            raise ValidationFailed("Parent category not found")

        if category is not None:
            if parent.id == category.id or any(node.id == category.id for node in self.ancestors(parent)):
                raise ValidationFailed("Category cannot be its own ancestor")

        return parent

    # ------------------------------------------------------------------
    # Admin
    # ------------------------------------------------------------------

    def create(self, data: CategoryCreate) -> Category:
        slug = slugify(data.slug or data.name)
        if not slug:
            raise ValidationFailed("Category name must contain letters or digits")
        if self.categories.name_taken(data.name):
            raise ConflictError("Category with this name already exists")
        if self.categories.slug_taken(slug):
            raise ConflictError("Category with this slug already exists")

        parent = self._resolve_parent(data.parent_id)

        values = data.model_dump(exclude={"slug", "parent_id"})
        if values.get("icon") is None:
            values.pop("icon", None)
        category = Category(slug=slug, **values)
        category.parent_id = parent.id if parent else None
        category.level = parent.level + 1 if parent else 1

        self.categories.add(category)
        self.db.commit()
        self.db.refresh(category)
        logger.info(f"Category created: {category.id} ({category.slug})")
        return category

    def update(self, category_id: int, data: CategoryUpdate) -> Category:
        category = self.get(category_id, active_only=False)
        changes = data.model_dump(exclude_unset=True)

        if changes.get("name"):
            if self.categories.name_taken(changes["name"], exclude_id=category.id):
                raise ConflictError("Category with this name already exists")
            if "slug" not in changes:
                changes["slug"] = changes["name"]

        if changes.get("slug"):
            changes["slug"] = slugify(changes["slug"])
            if self.categories.slug_taken(changes["slug"], exclude_id=category.id):
                raise ConflictError("Category with this slug already exists")
        else:
            changes.pop("slug", None)

        if "parent_id" in changes:
            parent = self._resolve_parent(changes.pop("parent_id"), category)
            category.parent = parent
            category.parent_id = parent.id if parent else None
            category.level = parent.level + 1 if parent else 1
            self._relevel_descendants(category)

        for field, value in changes.items():
            if value is None and field == "name":
                continue
            setattr(category, field, value)

        if changes.get("is_active") is True:
            category.deleted_at = None

        self.db.commit()
        self.db.refresh(category)
        logger.info(f"Category updated: {category.id}")
        return category

    def delete(self, category_id: int) -> None:
        category = self.get(category_id, active_only=False)
        if self.categories.active_children(category.id):
            raise ValidationFailed("Cannot delete category with subcategories")

        category.soft_delete()
        self.db.commit()
        logger.info(f"Category deactivated: {category.id}")

    def reorder(self, items: List[ReorderItem]) -> None:
        for item in items:
            category = self.categories.find_by_id(item.id)
            if category is None:
                raise NotFoundError(f"Category {item.id} not found")
            category.sort_order = item.order
        self.db.commit()


class BrandService:

    def __init__(self, db: Session):
        self.db = db
        self.brands = BrandRepository(db)
        self.categories = CategoryRepository(db)
        self.products = ProductRepository(db)

    def get(self, id_or_slug, active_only: bool = True) -> Brand:
        brand = self.brands.find(id_or_slug, active_only=active_only)
        if brand is None:
            raise NotFoundError("Brand not found")
        return brand

    def _categories(self, category_ids: List[int]) -> List[Category]:
        categories = []
        for category_id in dict.fromkeys(category_ids):
            category = self.categories.find_by_id(category_id)
            if category is None:
                raise ValidationFailed(f"Category {category_id} not found")
            categories.append(category)
        return categories

    def create(self, data: BrandCreate) -> Brand:
        slug = slugify(data.slug or data.name)
        if not slug:
            raise ValidationFailed("Brand name must contain letters or digits")
        if self.brands.name_taken(data.name):
            raise ConflictError("Brand with this name already exists")
        if self.brands.slug_taken(slug):
            raise ConflictError("Brand with this slug already exists")

        brand = Brand(slug=slug, **data.model_dump(exclude={"slug", "category_ids"}))
        brand.categories = self._categories(data.category_ids)

        self.brands.add(brand)
        self.db.commit()
        self.db.refresh(brand)
        logger.info(f"Brand created: {brand.id} ({brand.slug})")
        return brand

    def update(self, brand_id: int, data: BrandUpdate) -> Brand:
        brand = self.get(brand_id, active_only=False)
        changes = data.model_dump(exclude_unset=True)

        if changes.get("name"):
            if self.brands.name_taken(changes["name"], exclude_id=brand.id):
                raise ConflictError("Brand with this name already exists")
            if "slug" not in changes:
                changes["slug"] = changes["name"]

        if changes.get("slug"):
            changes["slug"] = slugify(changes["slug"])
            if self.brands.slug_taken(changes["slug"], exclude_id=brand.id):
                raise ConflictError("Brand with this slug already exists")
        else:
            changes.pop("slug", None)

        if "category_ids" in changes:
            brand.categories = self._categories(changes.pop("category_ids") or [])

        for field, value in changes.items():
            if value is None and field == "name":
                continue
            setattr(brand, field, value)

        if changes.get("is_active") is True:
            brand.deleted_at = None

        self.db.commit()
        self.db.refresh(brand)
        logger.info(f"Brand updated: {brand.id}")
        return brand

    def delete(self, brand_id: int) -> None:
        brand = self.get(brand_id, active_only=False)
        if self.products.count_active(brand_id=brand.id) > 0:
            raise ValidationFailed("Cannot delete brand with associated products")

        brand.soft_delete()
        self.db.commit()
        logger.info(f"Brand deactivated: {brand.id}")

    def reorder(self, items: List[ReorderItem]) -> None:
        for item in items:
            brand = self.brands.find_by_id(item.id)
            if brand is None:
                raise NotFoundError(f"Brand {item.id} not found")
            brand.sort_order = item.order
        self.db.commit()
