"""
Coupon Repository - Data Access Layer for Coupons
"""
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from storefront.models import Coupon, Order
from storefront.utils import escape_like, page_offset


class CouponRepository:
    """Repository for Coupon data access"""

    def __init__(self, db: Session):
        self.db = db

    def find_by_id(self, coupon_id: int) -> Optional[Coupon]:
        return self.db.get(Coupon, coupon_id)

    def find_by_code(self, code: str) -> Optional[Coupon]:
        """Codes are stored uppercase"""
        return self.db.query(Coupon).filter(Coupon.code == code.strip().upper()).first()

    def find_all(
        self,
        is_active: Optional[bool] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> Tuple[List[Coupon], int]:
        query = self.db.query(Coupon)
        if is_active is not None:
            query = query.filter(Coupon.is_active.is_(is_active))
        if search:
            query = query.filter(Coupon.code.like(f"%{escape_like(search.strip().upper())}%", escape="\\"))

        total = query.count()
        coupons = (
            query.order_by(Coupon.created_at.desc(), Coupon.id.desc())
            .offset(page_offset(page, limit))
            .limit(limit)
            .all()
        )
        return coupons, total

    def find_active(self, now: datetime) -> List[Coupon]:
        """Active coupons inside their date window with redemptions left"""
        return (
            self.db.query(Coupon)
            .filter(
                Coupon.is_active.is_(True),
                Coupon.start_date <= now,
                Coupon.end_date >= now,
                (Coupon.usage_limit.is_(None)) | (Coupon.usage_limit > 0),
            )
            .order_by(Coupon.end_date)
            .all()
        )

    def code_taken(self, code: str, exclude_id: Optional[int] = None) -> bool:
        query = self.db.query(Coupon.id).filter(Coupon.code == code.upper())
        if exclude_id is not None:
            query = query.filter(Coupon.id != exclude_id)
        return query.first() is not None

    def count_user_usage(self, code: str, user_id: int) -> int:
        """Non-cancelled orders of the user that used the code"""
        return (
            self.db.query(Order)
            .filter(
                Order.coupon_code == code.upper(),
                Order.user_id == user_id,
                Order.status != "cancelled",
            )
            .count()
        )

    def usage_stats(self, code: str) -> dict:
        times_used, total_discount = (
            self.db.query(func.count(Order.id), func.coalesce(func.sum(Order.discount_amount), 0))
            .filter(Order.coupon_code == code.upper(), Order.status != "cancelled")
            .one()
        )
        return {"times_used": times_used or 0, "total_discount": total_discount or 0}

    def add(self, coupon: Coupon) -> Coupon:
        self.db.add(coupon)
        self.db.flush()
        return coupon
