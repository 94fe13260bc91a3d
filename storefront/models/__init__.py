"""
Database models
"""
from .user import User, Address, wishlist_items
from .catalog import Brand, Category, Product
from .cart import Cart, CartItem
from .coupon import Coupon
from .order import Order, OrderItem, OrderStatus, Refund
from .review import Review, ReviewVote, ReviewReport

__all__ = [
    "User",
    "Address",
    "wishlist_items",
    "Brand",
    "Category",
    "Product",
    "Cart",
    "CartItem",
    "Coupon",
    "Order",
    "OrderItem",
    "OrderStatus",
    "Refund",
    "Review",
    "ReviewVote",
    "ReviewReport",
]
