"""
Coupon API Endpoints
Public listing, basket validation and admin coupon management
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from storefront.api.responses import paginated, success
from storefront.core.auth import get_current_user, require_admin
from storefront.core.database import get_db
from storefront.core.errors import NotFoundError
from storefront.domain.coupon import (
    CouponCreate,
    CouponResponse,
    CouponUpdate,
    CouponValidateRequest,
    PublicCouponResponse,
)
from storefront.models import User
from storefront.repositories import CouponRepository, ProductRepository
from storefront.services import CouponService

router = APIRouter()


@router.get("/")
async def list_coupons(
    is_active: Optional[bool] = Query(None),
    search: Optional[str] = Query(None, description="Matches the coupon code"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    coupons, total = CouponRepository(db).find_all(is_active=is_active, search=search, page=page, limit=limit)
    return paginated((CouponResponse.model_validate(c).to_dict() for c in coupons), total, page, limit)


@router.get("/active")
async def active_coupons(db: Session = Depends(get_db)):
    """Active coupons inside their date window"""
    coupons = CouponService(db).active()
    return success([PublicCouponResponse.model_validate(c).to_dict() for c in coupons])


@router.get("/code/{code}")
async def get_coupon_by_code(code: str, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    coupon = CouponRepository(db).find_by_code(code)
    if coupon is None:
        raise NotFoundError("Coupon not found")
    return success(CouponResponse.model_validate(coupon).to_dict())


@router.post("/validate")
async def validate_coupon(
    payload: CouponValidateRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Check a coupon against a basket without redeeming it

    Returns:
        {"valid": true, "discount": 10.0, "type": "percentage", "description": "..."}
    """
    products = ProductRepository(db).find_many(payload.product_ids) if payload.product_ids else []
    coupon, discount = CouponService(db).validate(payload.code, user, payload.subtotal, products)
    return success({
        "valid": True,
        "discount": float(discount),
        "type": coupon.type,
        "description": coupon.description,
    })


@router.get("/{coupon_id}")
async def get_coupon(coupon_id: int, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    coupon = CouponService(db).get(coupon_id)
    return success(CouponResponse.model_validate(coupon).to_dict())


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_coupon(payload: CouponCreate, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    coupon = CouponService(db).create(payload)
    return success(CouponResponse.model_validate(coupon).to_dict(), message="Coupon created")


@router.put("/{coupon_id}")
async def update_coupon(
    coupon_id: int,
    payload: CouponUpdate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    coupon = CouponService(db).update(coupon_id, payload)
    return success(CouponResponse.model_validate(coupon).to_dict(), message="Coupon updated")


@router.delete("/{coupon_id}")
async def delete_coupon(coupon_id: int, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    CouponService(db).delete(coupon_id)
    return success(message="Coupon deleted")


@router.get("/{coupon_id}/stats")
async def coupon_stats(coupon_id: int, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    return success(CouponService(db).stats(coupon_id))
