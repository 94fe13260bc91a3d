"""
Order API Endpoints
Checkout, order history and admin fulfilment (status, payment, tracking, refunds)
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from storefront.api.responses import paginated, request_meta, success
from storefront.connectors.mailer import Mailer, get_mailer
from storefront.connectors.payments import PaymentsConnector, get_payments_connector
from storefront.connectors.rates import RatesConnector, get_rates_connector
from storefront.core.auth import get_current_user, require_admin
from storefront.core.database import get_db
from storefront.domain.order import (
    OrderCreate,
    OrderResponse,
    OrderStatusEnum,
    OrderStatusUpdate,
    PaymentStatus,
    PaymentUpdate,
    RefundRequest,
    RefundResponse,
    TrackingCreate,
    TrackingUpdate,
)
from storefront.models import User
from storefront.repositories import OrderRepository
from storefront.services import OrderService

router = APIRouter()


def get_order_service(
    db: Session = Depends(get_db),
    rates: RatesConnector = Depends(get_rates_connector),
    payments: PaymentsConnector = Depends(get_payments_connector),
    mailer: Mailer = Depends(get_mailer),
) -> OrderService:
    return OrderService(db, rates=rates, payments=payments, mailer=mailer)


def _order(order) -> dict:
    return OrderResponse.model_validate(order).to_dict()


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_order(
    payload: OrderCreate,
    request: Request,
    user: User = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
):
    """
    Place an order from explicit items or, when items are omitted, from the cart

    For stripe payments the response carries the payment intent client_secret.
    """
    order, client_secret = await service.create(user, payload, **request_meta(request))
    return success({"order": _order(order), "client_secret": client_secret}, message="Order placed")


@router.get("/my-orders")
async def my_orders(
    status: Optional[OrderStatusEnum] = Query(None),
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
    return paginated((_order(o) for o in orders), total, page, limit)


@router.get("/")
async def list_orders(
    status: Optional[OrderStatusEnum] = Query(None),
    payment_status: Optional[PaymentStatus] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    orders, total = OrderRepository(db).find_all(
        status=status.value if status else None,
        payment_status=payment_status.value if payment_status else None,
        page=page,
        limit=limit,
    )
    return paginated((_order(o) for o in orders), total, page, limit)


@router.get("/{order_id}")
async def get_order(
    order_id: int,
    user: User = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
):
    """Owner or admin"""
    return success(_order(service.get_for_user(order_id, user)))


@router.put("/{order_id}/status")
async def update_order_status(
    order_id: int,
    payload: OrderStatusUpdate,
    request: Request,
    admin: User = Depends(require_admin),
    service: OrderService = Depends(get_order_service),
):
    order = service.update_status(order_id, payload.status, admin, payload.notes, **request_meta(request))
    return success(_order(order), message="Order status updated")


@router.put("/{order_id}/payment")
async def update_payment(
    order_id: int,
    payload: PaymentUpdate,
    admin: User = Depends(require_admin),
    service: OrderService = Depends(get_order_service),
):
    order = service.update_payment(order_id, payload.status, payload.transaction_id)
    return success(_order(order), message="Payment status updated")


@router.post("/{order_id}/tracking")
async def add_tracking(
    order_id: int,
    payload: TrackingCreate,
    admin: User = Depends(require_admin),
    service: OrderService = Depends(get_order_service),
):
    order = service.add_tracking(order_id, payload.carrier, payload.tracking_number, payload.url)
    return success(_order(order), message="Tracking information added")


@router.put("/{order_id}/tracking")
async def update_tracking(
    order_id: int,
    payload: TrackingUpdate,
    admin: User = Depends(require_admin),
    service: OrderService = Depends(get_order_service),
):
    order = service.update_tracking(order_id, payload.status, payload.location, payload.description)
    return success(_order(order), message="Tracking updated")


@router.post("/{order_id}/cancel")
async def cancel_order(
    order_id: int,
    request: Request,
    user: User = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
):
    order = service.cancel(order_id, user, **request_meta(request))
    return success(_order(order), message="Order cancelled")


@router.post("/{order_id}/refund")
async def refund_order(
    order_id: int,
    payload: RefundRequest,
    admin: User = Depends(require_admin),
    service: OrderService = Depends(get_order_service),
):
    order, refund = service.refund(order_id, payload.amount, payload.reason, admin)
    return success(
        {"order": _order(order), "refund": RefundResponse.model_validate(refund).to_dict()},
        message="Refund processed",
    )
