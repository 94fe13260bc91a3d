"""
User API Endpoints
Profile, password, wishlist and the user's own orders
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from storefront.api.responses import paginated, success
from storefront.core.auth import get_current_user
from storefront.core.database import get_db
from storefront.domain.catalog import ProductResponse
from storefront.domain.order import OrderResponse, OrderStatusEnum
from storefront.domain.user import ChangePasswordRequest, ProfileUpdate, UserResponse
from storefront.models import User
from storefront.repositories import OrderRepository
from storefront.services import UserService

router = APIRouter()


@router.get("/profile")
async def get_profile(user: User = Depends(get_current_user)):
    return success(UserResponse.model_validate(user).to_dict())


@router.put("/profile")
async def update_profile(
    payload: ProfileUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    user = UserService(db).update_profile(user, payload)
    return success(UserResponse.model_validate(user).to_dict(), message="Profile updated")


@router.put("/change-password")
async def change_password(
    payload: ChangePasswordRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    UserService(db).change_password(user, payload.current_password, payload.new_password)
    return success(message="Password changed successfully")


@router.get("/orders")
async def my_orders(
    status: Optional[OrderStatusEnum] = Query(None, description="Filter by order status"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    orders, total = OrderRepository(db).find_all(
        user_id=user.id,
        status=status.value if status else None,
        page=page,
        limit=limit,
    )
    return paginated((OrderResponse.model_validate(o).to_dict() for o in orders), total, page, limit)


@router.get("/wishlist")
async def get_wishlist(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    products = UserService(db).wishlist(user)
    return success([ProductResponse.model_validate(p).to_dict() for p in products])


@router.post("/wishlist/{product_id}")
async def add_to_wishlist(
    product_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    products = UserService(db).add_to_wishlist(user, product_id)
    return success([ProductResponse.model_validate(p).to_dict() for p in products], message="Added to wishlist")


@router.delete("/wishlist/{product_id}")
async def remove_from_wishlist(
    product_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    products = UserService(db).remove_from_wishlist(user, product_id)
    return success([ProductResponse.model_validate(p).to_dict() for p in products], message="Removed from wishlist")
