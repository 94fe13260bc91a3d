"""
User Domain Models

Request payloads for auth, profile and address book endpoints,
and the public user/address representations.
"""
from datetime import datetime
from enum import Enum
from typing import Annotated, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, EmailStr, Field, field_validator

from .base import DomainModel


class UserRole(str, Enum):
    USER = "user"
    ADMIN = "admin"


def check_password_strength(password: str) -> str:
    """At least 8 characters and one digit"""
    if len(password) < 8:
        raise ValueError("Password must be at least 8 characters")
    if not any(char.isdigit() for char in password):
        raise ValueError("Password must contain a number")
    return password


Password = Annotated[str, AfterValidator(check_password_strength)]


class UserRegister(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: Password

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v


class UserLogin(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class RefreshTokenRequest(BaseModel):
    refresh_token: str


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    password: Password


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: Password


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=50)


class AdminUserUpdate(ProfileUpdate):
    model_config = ConfigDict(use_enum_values=True)

    role: Optional[UserRole] = None
    is_active: Optional[bool] = None


class UserResponse(DomainModel):
    """Public representation of a user (never includes secrets)"""

    id: int
    name: str
    email: str
    phone: Optional[str] = None
    role: str
    is_active: bool
    is_email_verified: bool
    last_login_at: Optional[datetime] = None
    created_at: datetime


# ============================================================================
# Address book
# ============================================================================

class AddressCreate(BaseModel):
    label: Optional[str] = Field(None, max_length=100, description="Home, Work...")
    street: str = Field(..., min_length=1, max_length=255)
    city: str = Field(..., min_length=1, max_length=100)
    state: str = Field(..., min_length=1, max_length=100)
    zip_code: str = Field(..., min_length=1, max_length=20)
    country: str = Field(..., min_length=1, max_length=100)
    is_default: bool = False


class AddressUpdate(BaseModel):
    label: Optional[str] = Field(None, max_length=100)
    street: Optional[str] = Field(None, min_length=1, max_length=255)
    city: Optional[str] = Field(None, min_length=1, max_length=100)
    state: Optional[str] = Field(None, min_length=1, max_length=100)
    zip_code: Optional[str] = Field(None, min_length=1, max_length=20)
    country: Optional[str] = Field(None, min_length=1, max_length=100)
    is_default: Optional[bool] = None


class AddressResponse(DomainModel):
    id: int
    label: Optional[str] = None
    street: str
    city: str
    state: str
    zip_code: str
    country: str
    is_default: bool
    created_at: datetime
