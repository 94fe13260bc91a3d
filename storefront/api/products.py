"""
Product API Endpoints
Public catalog browsing and admin product management
"""
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from storefront.api.responses import paginated, success
from storefront.core.auth import require_admin
from storefront.core.database import get_db
from storefront.domain.catalog import ProductCreate, ProductResponse, ProductUpdate, StockAdjustment
from storefront.domain.review import ReviewResponse
from storefront.models import User
from storefront.repositories import CategoryRepository, ProductRepository, ReviewRepository
from storefront.services import ProductService

router = APIRouter()

SORT_PATTERN = "^(price-asc|price-desc|rating|newest)$"


def _products(products):
    return [ProductResponse.model_validate(p).to_dict() for p in products]


@router.get("/")
async def list_products(
    category: Optional[str] = Query(None, description="Category id or slug, includes subcategories"),
    brand: Optional[int] = Query(None, description="Brand id"),
    min_price: Optional[Decimal] = Query(None, ge=0),
    max_price: Optional[Decimal] = Query(None, ge=0),
    search: Optional[str] = Query(None, description="Matches name, description or SKU"),
    tags: Optional[str] = Query(None, description="Comma-separated tags"),
    featured: Optional[bool] = Query(None),
    sort: str = Query("newest", pattern=SORT_PATTERN),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    """
    List active products

    Query params:
        - category: id or slug; products of descendant categories are included
        - tags: any of the comma-separated tags
        - sort: price-asc | price-desc | rating | newest
    """
    category_ids = None
    if category:
        categories = CategoryRepository(db)
        found = categories.find(category)
        if found is None:
            return paginated([], 0, page, limit)
        category_ids = categories.descendant_ids(found.id)

    tag_list = [tag.strip() for tag in tags.split(",") if tag.strip()] if tags else None

    products, total = ProductRepository(db).find_all(
        category_ids=category_ids,
        brand_id=brand,
        min_price=min_price,
        max_price=max_price,
        search=search,
        tags=tag_list,
        featured=featured,
        sort=sort,
        page=page,
        limit=limit,
    )
    return paginated(_products(products), total, page, limit)


@router.get("/featured")
async def featured_products(limit: int = Query(8, ge=1, le=50), db: Session = Depends(get_db)):
    return success(_products(ProductRepository(db).featured(limit)))


@router.get("/new-arrivals")
async def new_arrivals(limit: int = Query(8, ge=1, le=50), db: Session = Depends(get_db)):
    return success(_products(ProductRepository(db).new_arrivals(limit)))


@router.get("/search")
async def search_products(
    q: str = Query(..., min_length=1, description="Search term"),
    limit: int = Query(10, ge=1, le=50),
    db: Session = Depends(get_db),
):
    products, _ = ProductRepository(db).find_all(search=q, page=1, limit=limit)
    return success(_products(products))


@router.get("/category/{category_id}")
async def products_by_category(
    category_id: int,
    sort: str = Query("newest", pattern=SORT_PATTERN),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    products, total = ProductService(db).by_category(category_id, page=page, limit=limit, sort=sort)
    return paginated(_products(products), total, page, limit)


@router.get("/{id_or_slug}")
async def get_product(id_or_slug: str, db: Session = Depends(get_db)):
    """Product page by id or slug; counts a view"""
    product = ProductService(db).view(id_or_slug)
    return success(ProductResponse.model_validate(product).to_dict())


@router.get("/{product_id}/similar")
async def similar_products(product_id: str, db: Session = Depends(get_db)):
    product = ProductService(db).get_active(product_id)
    return success(_products(ProductRepository(db).similar(product)))


@router.get("/{product_id}/reviews")
async def product_reviews(
    product_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
):
    """Approved reviews, newest first"""
    product = ProductService(db).get_active(product_id)
    reviews, total = ReviewRepository(db).find_for_product(product.id, page=page, limit=limit)
    return paginated((ReviewResponse.model_validate(r).to_dict() for r in reviews), total, page, limit)


# ============================================================================
# Admin
# ============================================================================

@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_product(
    payload: ProductCreate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    product = ProductService(db).create(payload)
    return success(ProductResponse.model_validate(product).to_dict(), message="Product created")


@router.put("/{product_id}")
async def update_product(
    product_id: int,
    payload: ProductUpdate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    product = ProductService(db).update(product_id, payload)
    return success(ProductResponse.model_validate(product).to_dict(), message="Product updated")


@router.delete("/{product_id}")
async def delete_product(product_id: int, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    ProductService(db).delete(product_id)
    return success(message="Product deleted")


@router.patch("/{product_id}/stock")
async def adjust_stock(
    product_id: int,
    payload: StockAdjustment,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    product = ProductService(db).adjust_stock(product_id, payload.delta)
    return success(ProductResponse.model_validate(product).to_dict(), message="Stock updated")
