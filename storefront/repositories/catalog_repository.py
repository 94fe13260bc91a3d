"""
Category and Brand Repositories - Data Access Layer for the catalog tree
"""
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from storefront.models import Brand, Category, Product, Review
from storefront.utils import page_offset


def _by_id_or_slug(query, model, id_or_slug):
    if str(id_or_slug).isdigit():
        found = query.filter(model.id == int(id_or_slug)).first()
        if found:
            return found
    return query.filter(model.slug == str(id_or_slug)).first()


class CategoryRepository:
    """
    Repository for Category data access

    Categories form a tree through parent_id; ordering is always
    (sort_order, name).
    """

    _UNSET = object()

    def __init__(self, db: Session):
        self.db = db

    def find_by_id(self, category_id: int) -> Optional[Category]:
        return self.db.get(Category, category_id)

    def find(self, id_or_slug, active_only: bool = True) -> Optional[Category]:
        query = self.db.query(Category)
        if active_only:
            query = query.filter(Category.is_active.is_(True))
        return _by_id_or_slug(query, Category, id_or_slug)

    def find_all(
        self,
        active: Optional[bool] = True,
        featured: Optional[bool] = None,
        parent_id=_UNSET,
        level: Optional[int] = None,
        page: int = 1,
        limit: int = 50,
    ) -> Tuple[List[Category], int]:
        """
        Find categories with filters

        Args:
            parent_id: None selects root categories; leave unset for all
        """
        query = self.db.query(Category)

        if active is not None:
            query = query.filter(Category.is_active.is_(active))
        if featured is not None:
            query = query.filter(Category.featured.is_(featured))
        if parent_id is not self._UNSET:
            if parent_id is None:
                query = query.filter(Category.parent_id.is_(None))
            else:
                query = query.filter(Category.parent_id == parent_id)
        if level is not None:
            query = query.filter(Category.level == level)

        total = query.count()
        categories = (
            query.order_by(Category.sort_order, Category.name)
            .offset(page_offset(page, limit))
            .limit(limit)
            .all()
        )
        return categories, total

    def all_active(self) -> List[Category]:
        return (
            self.db.query(Category)
            .filter(Category.is_active.is_(True))
            .order_by(Category.sort_order, Category.name)
            .all()
        )

    def active_children(self, category_id: int) -> List[Category]:
        return (
            self.db.query(Category)
            .filter(Category.parent_id == category_id, Category.is_active.is_(True))
            .order_by(Category.sort_order, Category.name)
            .all()
        )

    def descendant_ids(self, category_id: int) -> List[int]:
        """IDs of the category and every category below it"""
        ids = [category_id]
        frontier = [category_id]
        while frontier:
            rows = self.db.query(Category.id).filter(Category.parent_id.in_(frontier)).all()
            frontier = [row[0] for row in rows if row[0] not in ids]
            ids.extend(frontier)
        return ids

    def slug_taken(self, slug: str, exclude_id: Optional[int] = None) -> bool:
        query = self.db.query(Category.id).filter(Category.slug == slug)
        if exclude_id is not None:
            query = query.filter(Category.id != exclude_id)
        return query.first() is not None

    def name_taken(self, name: str, exclude_id: Optional[int] = None) -> bool:
        query = self.db.query(Category.id).filter(Category.name == name)
        if exclude_id is not None:
            query = query.filter(Category.id != exclude_id)
        return query.first() is not None

    def add(self, category: Category) -> Category:
        self.db.add(category)
        self.db.flush()
        return category


class BrandRepository:
    """Repository for Brand data access"""

    SORT_OPTIONS = {
        "name": (Brand.name.asc(),),
        "order": (Brand.sort_order.asc(), Brand.name.asc()),
        "created_at": (Brand.created_at.desc(), Brand.id.desc()),
    }

    def __init__(self, db: Session):
        self.db = db

    def find_by_id(self, brand_id: int) -> Optional[Brand]:
        return self.db.get(Brand, brand_id)

    def find(self, id_or_slug, active_only: bool = True) -> Optional[Brand]:
        query = self.db.query(Brand)
        if active_only:
            query = query.filter(Brand.is_active.is_(True))
        return _by_id_or_slug(query, Brand, id_or_slug)

    def find_all(
        self,
        active: Optional[bool] = True,
        featured: Optional[bool] = None,
        category_id: Optional[int] = None,
        sort: str = "order",
        page: int = 1,
        limit: int = 50,
    ) -> Tuple[List[Brand], int]:
        query = self.db.query(Brand)

        if active is not None:
            query = query.filter(Brand.is_active.is_(active))
        if featured is not None:
            query = query.filter(Brand.featured.is_(featured))
        if category_id is not None:
            query = query.filter(Brand.categories.any(Category.id == category_id))

        total = query.count()
        brands = (
            query.order_by(*self.SORT_OPTIONS.get(sort, self.SORT_OPTIONS["order"]))
            .offset(page_offset(page, limit))
            .limit(limit)
            .all()
        )
        return brands, total

    def stats(self, brand_id: int) -> dict:
        """
        Aggregate figures over the brand's active products

        Returns:
            {"product_count", "average_rating", "review_count"}
        """
        product_count = (
            self.db.query(func.count(Product.id))
            .filter(Product.brand_id == brand_id, Product.is_active.is_(True))
            .scalar()
        ) or 0

        average_rating, review_count = (
            self.db.query(func.avg(Review.rating), func.count(Review.id))
            .join(Product, Review.product_id == Product.id)
            .filter(
                Product.brand_id == brand_id,
                Product.is_active.is_(True),
                Review.status != "rejected",
            )
            .one()
        )

        return {
            "product_count": product_count,
            "average_rating": round(float(average_rating), 1) if average_rating is not None else 0,
            "review_count": review_count or 0,
        }

    def slug_taken(self, slug: str, exclude_id: Optional[int] = None) -> bool:
        query = self.db.query(Brand.id).filter(Brand.slug == slug)
        if exclude_id is not None:
            query = query.filter(Brand.id != exclude_id)
        return query.first() is not None

    def name_taken(self, name: str, exclude_id: Optional[int] = None) -> bool:
        query = self.db.query(Brand.id).filter(Brand.name == name)
        if exclude_id is not None:
            query = query.filter(Brand.id != exclude_id)
        return query.first() is not None

    def add(self, brand: Brand) -> Brand:
        self.db.add(brand)
        self.db.flush()
        return brand
