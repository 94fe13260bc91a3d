"""
User and address book tables
"""
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Table
from sqlalchemy.orm import relationship

from storefront.core.database import Base
from storefront.models.mixins import SoftDeleteMixin, TimestampMixin


wishlist_items = Table(
    "wishlist_items",
    Base.metadata,
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("product_id", Integer, ForeignKey("products.id", ondelete="CASCADE"), primary_key=True),
)


class User(TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    phone = Column(String(50))
    role = Column(String(20), nullable=False, default="user")

    is_email_verified = Column(Boolean, default=False, nullable=False)
    email_verification_token = Column(String(128), index=True)
    reset_password_token = Column(String(128), index=True)
    reset_password_expires = Column(DateTime)
    last_login_at = Column(DateTime)

    addresses = relationship(
        "Address", back_populates="user", cascade="all, delete-orphan", order_by="Address.id"
    )
    wishlist = relationship("Product", secondary=wishlist_items, lazy="selectin")

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


class Address(TimestampMixin, Base):
    __tablename__ = "addresses"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    label = Column(String(100))
    street = Column(String(255), nullable=False)
    city = Column(String(100), nullable=False)
    state = Column(String(100), nullable=False)
    zip_code = Column(String(20), nullable=False)
    country = Column(String(100), nullable=False)
    is_default = Column(Boolean, default=False, nullable=False)

    user = relationship("User", back_populates="addresses")
