"""
Services - multi-step business operations on top of the repositories
"""
from .auth_service import AuthService
from .user_service import UserService
from .address_service import AddressService
from .product_service import ProductService
from .catalog_service import CategoryService, BrandService
from .cart_service import CartService
from .coupon_service import CouponService
from .order_service import OrderService
from .review_service import ReviewService
from .report_service import ReportService

__all__ = [
    "AuthService",
    "UserService",
    "AddressService",
    "ProductService",
    "CategoryService",
    "BrandService",
    "CartService",
    "CouponService",
    "OrderService",
    "ReviewService",
    "ReportService",
]
