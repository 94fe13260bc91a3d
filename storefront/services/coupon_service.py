"""
Coupon Service
Coupon validation against a basket, redemption and admin management
"""
import logging
from decimal import Decimal
from typing import Iterable, List, Tuple

from sqlalchemy.orm import Session

from storefront.core.errors import ConflictError, NotFoundError, ValidationFailed
from storefront.domain.coupon import CouponCreate, CouponUpdate
from storefront.models import Coupon, Product, User
from storefront.models.mixins import as_utc_naive, utcnow
from storefront.repositories import CouponRepository
from storefront.services.pricing import (
    calculate_coupon_discount,
    coupon_applies_to_product,
    coupon_is_valid,
    to_decimal,
)

logger = logging.getLogger(__name__)


class CouponService:

    def __init__(self, db: Session):
        self.db = db
        self.coupons = CouponRepository(db)

    def get(self, coupon_id: int) -> Coupon:
        coupon = self.coupons.find_by_id(coupon_id)
        if coupon is None:
            raise NotFoundError("Coupon not found")
        return coupon

    def validate(
        self,
        code: str,
        user: User,
        subtotal,
        products: Iterable[Product] = (),
    ) -> Tuple[Coupon, Decimal]:
        """
        Check a coupon against a basket

        Args:
            code: Coupon code (case-insensitive)
            user: Shopper redeeming the coupon
            subtotal: Basket subtotal
            products: Products in the basket

        Returns:
            Tuple of (coupon, discount)

        Raises:
            NotFoundError: Unknown code
            ValidationFailed: Inactive/expired/exhausted, below minimum,
                per-user limit reached or products out of scope
        """
        coupon = self.coupons.find_by_code(code)
        if coupon is None:
            raise NotFoundError("Invalid coupon code")

        now = utcnow()
        if not coupon_is_valid(coupon, now):
            raise ValidationFailed("Coupon is not valid")

        subtotal = to_decimal(subtotal)
        if subtotal < to_decimal(coupon.min_purchase):
            raise ValidationFailed(f"Minimum purchase amount of ${coupon.min_purchase} required")

        if coupon.per_user_limit is not None:
            if self.coupons.count_user_usage(coupon.code, user.id) >= coupon.per_user_limit:
                raise ValidationFailed("Coupon usage limit reached")

        if not all(coupon_applies_to_product(coupon, product) for product in products):
            raise ValidationFailed("Coupon cannot be applied to some products in cart")

        return coupon, calculate_coupon_discount(coupon, subtotal, now)

    def redeem(self, coupon: Coupon) -> None:
        """
        Use up one redemption; a coupon that reaches zero is deactivated.
        Does not commit.
        """
        if coupon.usage_limit is None:
            return
        coupon.usage_limit = max(coupon.usage_limit - 1, 0)
        if coupon.usage_limit == 0:
            coupon.is_active = False
            logger.info(f"Coupon {coupon.code} exhausted")

    def active(self) -> List[Coupon]:
        return self.coupons.find_active(utcnow())

    # ------------------------------------------------------------------
    # Admin
    # ------------------------------------------------------------------

    def create(self, data: CouponCreate) -> Coupon:
        if self.coupons.code_taken(data.code):
            raise ConflictError("Coupon code already exists")

        values = data.model_dump()
        values["start_date"] = as_utc_naive(data.start_date)
        values["end_date"] = as_utc_naive(data.end_date)

        coupon = Coupon(**values)
        self.coupons.add(coupon)
        self.db.commit()
        self.db.refresh(coupon)
        logger.info(f"Coupon created: {coupon.code}")
        return coupon

    def update(self, coupon_id: int, data: CouponUpdate) -> Coupon:
        coupon = self.get(coupon_id)
        changes = data.model_dump(exclude_unset=True)

        if changes.get("code") and self.coupons.code_taken(changes["code"], exclude_id=coupon.id):
            raise ConflictError("Coupon code already exists")

        for field in ("start_date", "end_date"):
            if field in changes:
                changes[field] = as_utc_naive(changes[field])

        required = ("code", "type", "value", "min_purchase", "start_date", "end_date")
        for field, value in changes.items():
            if value is None and field in required:
                continue
            setattr(coupon, field, value)

        if coupon.end_date <= coupon.start_date:
            raise ValidationFailed("end_date must be after start_date")
        if coupon.type == "percentage" and to_decimal(coupon.value) > 100:
            raise ValidationFailed("Percentage value cannot exceed 100")

        if changes.get("is_active") is True:
            coupon.deleted_at = None

        self.db.commit()
        self.db.refresh(coupon)
        logger.info(f"Coupon updated: {coupon.code}")
        return coupon

    def delete(self, coupon_id: int) -> None:
        coupon = self.get(coupon_id)
        coupon.soft_delete()
        self.db.commit()
        logger.info(f"Coupon deactivated: {coupon.code}")

    def stats(self, coupon_id: int) -> dict:
        coupon = self.get(coupon_id)
        usage = self.coupons.usage_stats(coupon.code)
        return {
            "code": coupon.code,
            "times_used": usage["times_used"],
            "total_discount": float(usage["total_discount"]),
            "remaining_uses": coupon.usage_limit,
            "is_valid": coupon_is_valid(coupon),
        }
