"""
Coupon table
"""
from sqlalchemy import JSON, Column, DECIMAL, DateTime, Integer, String, Text

from storefront.core.database import Base
from storefront.models.mixins import SoftDeleteMixin, TimestampMixin


class Coupon(TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "coupons"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(50), nullable=False, unique=True, index=True)
    type = Column(String(20), nullable=False)  # percentage | fixed | free_shipping
    value = Column(DECIMAL(12, 2), nullable=False)
    min_purchase = Column(DECIMAL(12, 2), default=0, nullable=False)
    max_discount = Column(DECIMAL(12, 2))

    start_date = Column(DateTime, nullable=False, index=True)
    end_date = Column(DateTime, nullable=False, index=True)

    # NULL means unlimited; CouponCreate defaults per_user_limit to 1
    usage_limit = Column(Integer)
    per_user_limit = Column(Integer)

    # Scopes (lists of ids)
    category_ids = Column(JSON, default=list)
    product_ids = Column(JSON, default=list)
    excluded_product_ids = Column(JSON, default=list)

    description = Column(Text)
