"""
Category API Endpoints
Category listing, tree, detail pages and admin maintenance
"""
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query, status
from sqlalchemy.orm import Session

from storefront.api.responses import paginated, success
from storefront.core.auth import require_admin
from storefront.core.database import get_db
from storefront.core.errors import ValidationFailed
from storefront.domain.catalog import (
    CategoryCreate,
    CategoryResponse,
    CategoryUpdate,
    ProductResponse,
    ReorderItem,
)
from storefront.models import User
from storefront.repositories import CategoryRepository
from storefront.services import CategoryService, ProductService

router = APIRouter()


def _parse_parent(parent: Optional[str]):
    """'null' selects root categories, a number selects its children"""
    if parent is None:
        return CategoryRepository._UNSET
    if parent.lower() in ("null", "none", "root"):
        return None
    if not parent.isdigit():
        raise ValidationFailed("parent must be a category id or 'null'")
    return int(parent)


@router.get("/")
async def list_categories(
    active: Optional[bool] = Query(True),
    featured: Optional[bool] = Query(None),
    parent: Optional[str] = Query(None, description="Parent id, or 'null' for root categories"),
    level: Optional[int] = Query(None, ge=1),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
):
    categories, total = CategoryRepository(db).find_all(
        active=active,
        featured=featured,
        parent_id=_parse_parent(parent),
        level=level,
        page=page,
        limit=limit,
    )
    return paginated((CategoryResponse.model_validate(c).to_dict() for c in categories), total, page, limit)


@router.get("/tree")
async def category_tree(db: Session = Depends(get_db)):
    return success(CategoryService(db).tree())


@router.get("/featured")
async def featured_categories(db: Session = Depends(get_db)):
    categories, _ = CategoryRepository(db).find_all(featured=True, page=1, limit=50)
    return success([CategoryResponse.model_validate(c).to_dict() for c in categories])


@router.get("/{id_or_slug}")
async def get_category(id_or_slug: str, db: Session = Depends(get_db)):
    """Category with breadcrumb, children, product_count and path"""
    service = CategoryService(db)
    return success(service.detail(service.get(id_or_slug)))


@router.get("/{category_id}/products")
async def category_products(
    category_id: int,
    sort: str = Query("newest", pattern="^(price-asc|price-desc|rating|newest)$"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    products, total = ProductService(db).by_category(category_id, page=page, limit=limit, sort=sort)
    return paginated((ProductResponse.model_validate(p).to_dict() for p in products), total, page, limit)


# ============================================================================
# Admin
# ============================================================================

@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_category(
    payload: CategoryCreate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    category = CategoryService(db).create(payload)
    return success(CategoryResponse.model_validate(category).to_dict(), message="Category created")


@router.put("/reorder")
async def reorder_categories(
    items: List[ReorderItem] = Body(...),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    CategoryService(db).reorder(items)
    return success(message="Categories reordered")


@router.put("/{category_id}")
async def update_category(
    category_id: int,
    payload: CategoryUpdate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    category = CategoryService(db).update(category_id, payload)
    return success(CategoryResponse.model_validate(category).to_dict(), message="Category updated")


@router.delete("/{category_id}")
async def delete_category(category_id: int, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    CategoryService(db).delete(category_id)
    return success(message="Category deleted")
