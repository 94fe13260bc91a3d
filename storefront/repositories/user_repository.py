"""
User Repository - Data Access Layer for Users and Addresses
"""
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from storefront.models import Address, Order, User
from storefront.utils import page_offset


class UserRepository:
    """
    Repository for User data access

    All queries for users are centralized here.
    """

    def __init__(self, db: Session):
        self.db = db

    def find_by_id(self, user_id: int) -> Optional[User]:
        return self.db.get(User, user_id)

    def find_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email.lower()).first()

    def find_by_verification_token(self, token: str) -> Optional[User]:
        return self.db.query(User).filter(User.email_verification_token == token).first()

    def find_by_reset_token(self, token_hash: str) -> Optional[User]:
        return self.db.query(User).filter(User.reset_password_token == token_hash).first()

    def find_all(self, page: int = 1, limit: int = 20) -> Tuple[List[User], int]:
        """
        Find users, newest first

        Returns:
            Tuple of (list of users, total count)
        """
        query = self.db.query(User)
        total = query.count()
        users = (
            query.order_by(User.created_at.desc(), User.id.desc())
            .offset(page_offset(page, limit))
            .limit(limit)
            .all()
        )
        return users, total

    def email_taken(self, email: str, exclude_id: Optional[int] = None) -> bool:
        query = self.db.query(User.id).filter(User.email == email.lower())
        if exclude_id is not None:
            query = query.filter(User.id != exclude_id)
        return query.first() is not None

    def count_orders(self, user_id: int) -> int:
        return self.db.query(Order).filter(Order.user_id == user_id).count()

    def count(self) -> int:
        return self.db.query(User).count()

    def add(self, user: User) -> User:
        self.db.add(user)
        self.db.flush()
        return user


class AddressRepository:
    """Per-user address book queries"""

    def __init__(self, db: Session):
        self.db = db

    def find_for_user(self, user_id: int) -> List[Address]:
        return (
            self.db.query(Address)
            .filter(Address.user_id == user_id)
            .order_by(Address.is_default.desc(), Address.id)
            .all()
        )

    def find_one(self, user_id: int, address_id: int) -> Optional[Address]:
        """Address only if it belongs to the user"""
        return (
            self.db.query(Address)
            .filter(Address.id == address_id, Address.user_id == user_id)
            .first()
        )

    def count_for_user(self, user_id: int) -> int:
        return self.db.query(Address).filter(Address.user_id == user_id).count()

    def oldest_for_user(self, user_id: int) -> Optional[Address]:
        return (
            self.db.query(Address)
            .filter(Address.user_id == user_id)
            .order_by(Address.created_at, Address.id)
            .first()
        )

    def clear_default(self, user_id: int, except_id: Optional[int] = None):
        query = self.db.query(Address).filter(Address.user_id == user_id, Address.is_default.is_(True))
        if except_id is not None:
            query = query.filter(Address.id != except_id)
        for address in query.all():
            address.is_default = False

    def add(self, address: Address) -> Address:
        self.db.add(address)
        self.db.flush()
        return address

    def delete(self, address: Address):
        self.db.delete(address)
        self.db.flush()
