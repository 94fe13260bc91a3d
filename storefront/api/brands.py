"""
Brand API Endpoints
"""
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query, status
from sqlalchemy.orm import Session

from storefront.api.responses import paginated, success
from storefront.core.auth import require_admin
from storefront.core.database import get_db
from storefront.domain.catalog import BrandCreate, BrandResponse, BrandUpdate, ProductResponse, ReorderItem
from storefront.models import User
from storefront.repositories import BrandRepository, ProductRepository
from storefront.services import BrandService

router = APIRouter()


@router.get("/")
async def list_brands(
    active: Optional[bool] = Query(True),
    featured: Optional[bool] = Query(None),
    category: Optional[int] = Query(None, description="Category id"),
    sort: str = Query("order", pattern="^(name|order|created_at)$"),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
):
    brands, total = BrandRepository(db).find_all(
        active=active,
        featured=featured,
        category_id=category,
        sort=sort,
        page=page,
        limit=limit,
    )
    return paginated((BrandResponse.model_validate(b).to_dict() for b in brands), total, page, limit)


@router.get("/featured")
async def featured_brands(db: Session = Depends(get_db)):
    brands, _ = BrandRepository(db).find_all(featured=True, page=1, limit=50)
    return success([BrandResponse.model_validate(b).to_dict() for b in brands])


@router.get("/{id_or_slug}")
async def get_brand(id_or_slug: str, db: Session = Depends(get_db)):
    brand = BrandService(db).get(id_or_slug)
    return success(BrandResponse.model_validate(brand).to_dict())


@router.get("/{brand_id}/products")
async def brand_products(
    brand_id: str,
    sort: str = Query("newest", pattern="^(price-asc|price-desc|rating|newest)$"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    brand = BrandService(db).get(brand_id)
    products, total = ProductRepository(db).find_all(brand_id=brand.id, sort=sort, page=page, limit=limit)
    return paginated((ProductResponse.model_validate(p).to_dict() for p in products), total, page, limit)


@router.get("/{brand_id}/stats")
async def brand_stats(brand_id: str, db: Session = Depends(get_db)):
    """product_count, average_rating and review_count over the brand's active products"""
    brand = BrandService(db).get(brand_id)
    return success(BrandRepository(db).stats(brand.id))


# ============================================================================
# Admin
# ============================================================================

@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_brand(payload: BrandCreate, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    brand = BrandService(db).create(payload)
    return success(BrandResponse.model_validate(brand).to_dict(), message="Brand created")


@router.put("/reorder")
async def reorder_brands(
    items: List[ReorderItem] = Body(...),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    BrandService(db).reorder(items)
    return success(message="Brands reordered")


@router.put("/{brand_id}")
async def update_brand(
    brand_id: int,
    payload: BrandUpdate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    brand = BrandService(db).update(brand_id, payload)
    return success(BrandResponse.model_validate(brand).to_dict(), message="Brand updated")


@router.delete("/{brand_id}")
async def delete_brand(brand_id: int, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    BrandService(db).delete(brand_id)
    return success(message="Brand deleted")
