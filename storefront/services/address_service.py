"""
Address Service
Per-user address book with a single default address
"""
from typing import List

from sqlalchemy.orm import Session

from storefront.core.errors import NotFoundError
from storefront.domain.user import AddressCreate, AddressUpdate
from storefront.models import Address, User
from storefront.repositories import AddressRepository


class AddressService:
    """
    Invariants:
    - at most one default address per user
    - the first address becomes the default
    - deleting the default promotes the oldest remaining address
    """

    def __init__(self, db: Session):
        self.db = db
        self.addresses = AddressRepository(db)

    def list(self, user: User) -> List[Address]:
        return self.addresses.find_for_user(user.id)

    def get(self, user: User, address_id: int) -> Address:
        address = self.addresses.find_one(user.id, address_id)
        if address is None:
            raise NotFoundError("Address not found")
        return address

    def create(self, user: User, data: AddressCreate) -> Address:
        is_first = self.addresses.count_for_user(user.id) == 0
        address = Address(user_id=user.id, **data.model_dump())
        address.is_default = data.is_default or is_first

        self.addresses.add(address)
        if address.is_default:
            self.addresses.clear_default(user.id, except_id=address.id)

        self.db.commit()
        self.db.refresh(address)
        return address

    def update(self, user: User, address_id: int, data: AddressUpdate) -> Address:
        address = self.get(user, address_id)
        changes = data.model_dump(exclude_unset=True)

        for field, value in changes.items():
            if value is None and field != "label":
                continue
            setattr(address, field, value)

        if changes.get("is_default"):
            self.addresses.clear_default(user.id, except_id=address.id)

        self.db.commit()
        self.db.refresh(address)
        return address

    def delete(self, user: User, address_id: int) -> None:
        address = self.get(user, address_id)
        was_default = address.is_default

        self.addresses.delete(address)
        if was_default:
            replacement = self.addresses.oldest_for_user(user.id)
            if replacement is not None:
                replacement.is_default = True

        self.db.commit()

    def set_default(self, user: User, address_id: int) -> Address:
        address = self.get(user, address_id)
        self.addresses.clear_default(user.id, except_id=address.id)
        address.is_default = True
        self.db.commit()
        self.db.refresh(address)
        return address
