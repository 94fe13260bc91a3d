"""
Address API Endpoints
The signed-in user's address book
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from storefront.api.responses import success
from storefront.core.auth import get_current_user
from storefront.core.database import get_db
from storefront.domain.user import AddressCreate, AddressResponse, AddressUpdate
from storefront.models import User
from storefront.services import AddressService

router = APIRouter()


@router.get("/")
async def list_addresses(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Default address first"""
    addresses = AddressService(db).list(user)
    return success([AddressResponse.model_validate(a).to_dict() for a in addresses])


@router.get("/{address_id}")
async def get_address(address_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    address = AddressService(db).get(user, address_id)
    return success(AddressResponse.model_validate(address).to_dict())


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_address(
    payload: AddressCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    address = AddressService(db).create(user, payload)
    return success(AddressResponse.model_validate(address).to_dict(), message="Address added")


@router.put("/{address_id}")
async def update_address(
    address_id: int,
    payload: AddressUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    address = AddressService(db).update(user, address_id, payload)
    return success(AddressResponse.model_validate(address).to_dict(), message="Address updated")


@router.delete("/{address_id}")
async def delete_address(address_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    AddressService(db).delete(user, address_id)
    return success(message="Address deleted")


@router.put("/{address_id}/default")
async def set_default_address(
    address_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    address = AddressService(db).set_default(user, address_id)
    return success(AddressResponse.model_validate(address).to_dict(), message="Default address updated")
