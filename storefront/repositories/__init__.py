"""
Repositories - Data Access Layer

Each repository wraps a SQLAlchemy session and owns the queries
for one aggregate.
"""
from .user_repository import UserRepository, AddressRepository
from .product_repository import ProductRepository
from .catalog_repository import CategoryRepository, BrandRepository
from .cart_repository import CartRepository
from .coupon_repository import CouponRepository
from .order_repository import OrderRepository
from .review_repository import ReviewRepository

__all__ = [
    "UserRepository",
    "AddressRepository",
    "ProductRepository",
    "CategoryRepository",
    "BrandRepository",
    "CartRepository",
    "CouponRepository",
    "OrderRepository",
    "ReviewRepository",
]
