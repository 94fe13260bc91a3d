"""
Order Repository - Data Access Layer for Orders

Handles order lookups, listings and the aggregates used by the
admin dashboard and sales report.
"""
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from storefront.models import Order, OrderItem
from storefront.utils import page_offset


class OrderRepository:
    """
    Repository for Order data access

    All queries for orders are centralized here.
    """

    def __init__(self, db: Session):
        self.db = db

    def find_by_id(self, order_id: int) -> Optional[Order]:
        return self.db.get(Order, order_id)

    def find_by_number(self, order_number: str) -> Optional[Order]:
        return self.db.query(Order).filter(Order.order_number == order_number).first()

    def find_all(
        self,
        user_id: Optional[int] = None,
        status: Optional[str] = None,
        payment_status: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> Tuple[List[Order], int]:
        """
        Find orders with filters, newest first

        Returns:
            Tuple of (list of orders, total count)
        """
        query = self.db.query(Order)

        if user_id is not None:
            query = query.filter(Order.user_id == user_id)
        if status:
            query = query.filter(Order.status == status)
        if payment_status:
            query = query.filter(Order.payment_status == payment_status)

        total = query.count()
        orders = (
            query.order_by(Order.created_at.desc(), Order.id.desc())
            .offset(page_offset(page, limit))
            .limit(limit)
            .all()
        )
        return orders, total

    def recent(self, limit: int = 5) -> List[Order]:
        return self.db.query(Order).order_by(Order.created_at.desc(), Order.id.desc()).limit(limit).all()

    def count(self) -> int:
        return self.db.query(Order).count()

    def has_delivered_purchase(self, user_id: int, product_id: int) -> bool:
        """Whether the user has a delivered order containing the product"""
        return (
            self.db.query(OrderItem.id)
            .join(Order, OrderItem.order_id == Order.id)
            .filter(
                Order.user_id == user_id,
                Order.status == "delivered",
                OrderItem.product_id == product_id,
            )
            .first()
            is not None
        )

    def delivered_revenue(self):
        return (
            self.db.query(func.coalesce(func.sum(Order.total), 0))
            .filter(Order.status == "delivered")
            .scalar()
        )

    def delivered_product_totals(self, product_ids: List[int]) -> Dict[int, Tuple[int, object]]:
        """
        Units sold and revenue per product over delivered orders

        Returns:
            {product_id: (quantity, revenue)}
        """
        if not product_ids:
            return {}
        rows = (
            self.db.query(
                OrderItem.product_id,
                func.coalesce(func.sum(OrderItem.quantity), 0),
                func.coalesce(func.sum(OrderItem.total), 0),
            )
            .join(Order, OrderItem.order_id == Order.id)
            .filter(Order.status == "delivered", OrderItem.product_id.in_(product_ids))
            .group_by(OrderItem.product_id)
            .all()
        )
        return {product_id: (quantity, revenue) for product_id, quantity, revenue in rows}

    def delivered_between(self, start: Optional[datetime], end: Optional[datetime]) -> List[Order]:
        query = self.db.query(Order).filter(Order.status == "delivered")
        if start is not None:
            query = query.filter(Order.created_at >= start)
        if end is not None:
            query = query.filter(Order.created_at <= end)
        return query.order_by(Order.created_at).all()

    def add(self, order: Order) -> Order:
        self.db.add(order)
        self.db.flush()
        return order
