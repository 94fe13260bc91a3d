"""
Cart API Endpoints
The signed-in user's cart; totals come back recalculated on every change
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.api.responses import success
from storefront.connectors.rates import RatesConnector, get_rates_connector
from storefront.core.auth import get_current_user
from storefront.core.database import get_db
from storefront.domain.cart import (
    ApplyCouponRequest,
    CartItemAdd,
    CartItemUpdate,
    CartResponse,
    ShippingRequest,
)
from storefront.models import User
from storefront.services import CartService

router = APIRouter()


def _cart(cart) -> dict:
    if cart is None:
        return CartResponse().to_dict()
    return CartResponse.model_validate(cart).to_dict()


@router.get("/")
async def get_cart(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """An empty cart is returned when the user has none yet"""
    return success(_cart(CartService(db).get(user)))


@router.post("/items")
async def add_item(payload: CartItemAdd, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    cart = CartService(db).add_item(
        user,
        payload.product_id,
        payload.quantity,
        payload.variant.model_dump() if payload.variant else None,
    )
    return success(_cart(cart), message="Item added to cart")


@router.put("/items/{product_id}")
async def update_item(
    product_id: int,
    payload: CartItemUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    cart = CartService(db).update_item(user, product_id, payload.quantity)
    return success(_cart(cart), message="Cart updated")


@router.delete("/items/{product_id}")
async def remove_item(product_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    cart = CartService(db).remove_item(user, product_id)
    return success(_cart(cart), message="Item removed from cart")


@router.delete("/")
async def clear_cart(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    cart = CartService(db).clear(user)
    return success(_cart(cart), message="Cart cleared")


@router.post("/coupon")
async def apply_coupon(
    payload: ApplyCouponRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    cart = CartService(db).apply_coupon(user, payload.code)
    return success(_cart(cart), message="Coupon applied")


@router.delete("/coupon")
async def remove_coupon(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    cart = CartService(db).remove_coupon(user)
    return success(_cart(cart), message="Coupon removed")


@router.put("/shipping")
async def set_shipping(
    payload: ShippingRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    rates: RatesConnector = Depends(get_rates_connector),
):
    """Quote shipping and tax for the destination address"""
    cart = await CartService(db, rates).set_shipping(user, payload.method, payload.address.model_dump())
    return success(_cart(cart), message="Shipping updated")
