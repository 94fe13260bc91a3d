"""
Shared column helpers for ORM models
"""
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, Column, DateTime


def utcnow() -> datetime:
    """Current UTC time, stored without tzinfo"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def as_utc_naive(value: Optional[datetime]) -> Optional[datetime]:
    """Normalize an aware datetime to naive UTC (naive values pass through)"""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class TimestampMixin:
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)


class SoftDeleteMixin:
    """Rows are deactivated instead of removed"""

    is_active = Column(Boolean, default=True, nullable=False, index=True)
    deleted_at = Column(DateTime)

    def soft_delete(self):
        self.is_active = False
        self.deleted_at = utcnow()
