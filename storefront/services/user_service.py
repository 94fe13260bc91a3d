"""
User Service
Profile, password, wishlist and admin user management
"""
import logging
from typing import List

from sqlalchemy.orm import Session

from storefront.core.auth import hash_password, verify_password
from storefront.core.errors import ConflictError, NotFoundError, ValidationFailed
from storefront.domain.user import AdminUserUpdate, ProfileUpdate
from storefront.models import Product, User
from storefront.repositories import ProductRepository, UserRepository

logger = logging.getLogger(__name__)


class UserService:

    def __init__(self, db: Session):
        self.db = db
        self.users = UserRepository(db)
        self.products = ProductRepository(db)

    def get(self, user_id: int) -> User:
        user = self.users.find_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    def _apply_profile(self, user: User, data: ProfileUpdate) -> None:
        changes = data.model_dump(exclude_unset=True)

        if changes.get("email"):
            email = changes["email"].lower()
            if self.users.email_taken(email, exclude_id=user.id):
                raise ConflictError("Email already in use")
            changes["email"] = email
            if email != user.email:
                user.is_email_verified = False

        for field, value in changes.items():
            if value is None and field in ("name", "email", "role", "is_active"):
                continue
            setattr(user, field, value)

    def update_profile(self, user: User, data: ProfileUpdate) -> User:
        self._apply_profile(user, data)
        self.db.commit()
        self.db.refresh(user)
        return user

    def change_password(self, user: User, current_password: str, new_password: str) -> None:
        if not verify_password(current_password, user.password_hash):
            raise ValidationFailed("Current password is incorrect")

        user.password_hash = hash_password(new_password)
        self.db.commit()
        logger.info(f"Password changed for user {user.id}")

    # ------------------------------------------------------------------
    # Wishlist
    # ------------------------------------------------------------------

    def wishlist(self, user: User) -> List[Product]:
        return [product for product in user.wishlist if product.is_active]

    def add_to_wishlist(self, user: User, product_id: int) -> List[Product]:
        product = self.products.find_by_id(product_id)
        if product is None or not product.is_active:
            raise NotFoundError("Product not found")

        if any(item.id == product.id for item in user.wishlist):
            raise ConflictError("Product already in wishlist")

        user.wishlist.append(product)
        self.db.commit()
        self.db.refresh(user)
        return self.wishlist(user)

    def remove_from_wishlist(self, user: User, product_id: int) -> List[Product]:
        for product in list(user.wishlist):
            if product.id == product_id:
                user.wishlist.remove(product)
                break
        else:
            raise NotFoundError("Product not in wishlist")

        self.db.commit()
        self.db.refresh(user)
        return self.wishlist(user)

    # ------------------------------------------------------------------
    # Admin
    # ------------------------------------------------------------------

    def admin_update(self, user_id: int, data: AdminUserUpdate) -> User:
        user = self.get(user_id)
        self._apply_profile(user, data)
        if data.is_active is True:
            user.deleted_at = None
        self.db.commit()
        self.db.refresh(user)
        logger.info(f"User {user.id} updated by admin")
        return user

    def admin_delete(self, user_id: int) -> None:
        """Soft delete; users with orders are kept for order history"""
        user = self.get(user_id)
        if self.users.count_orders(user.id) > 0:
            raise ValidationFailed("Cannot delete user with existing orders")

        user.soft_delete()
        self.db.commit()
        logger.info(f"User {user.id} deactivated")
