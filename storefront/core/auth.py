"""
Authentication for the Storefront API
Password hashing, JWT issuance/validation and user dependencies
"""
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from storefront.core.config import settings
from storefront.core.database import get_db
from storefront.models import User


# Security scheme for bearer tokens
security = HTTPBearer(auto_error=False)

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

ACCESS_TOKEN = "access"
REFRESH_TOKEN = "refresh"


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, password_hash: str) -> bool:
    return pwd_context.verify(plain_password, password_hash)


def _encode(payload: dict, secret: str, expires_delta: timedelta) -> str:
    to_encode = payload.copy()
    now = datetime.now(timezone.utc)
    to_encode.update({"iat": now, "exp": now + expires_delta})
    return jwt.encode(to_encode, secret, algorithm=settings.JWT_ALGORITHM)


def create_access_token(user: User, expires_delta: Optional[timedelta] = None) -> str:
    """Short-lived token sent as Authorization: Bearer"""
    return _encode(
        {"sub": str(user.id), "role": user.role, "type": ACCESS_TOKEN},
        settings.JWT_SECRET,
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    )


def create_refresh_token(user: User, expires_delta: Optional[timedelta] = None) -> str:
    """Long-lived token exchanged for new access tokens"""
    return _encode(
        {"sub": str(user.id), "type": REFRESH_TOKEN},
        settings.JWT_REFRESH_SECRET,
        expires_delta or timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
    )


def decode_token(token: str, refresh: bool = False) -> dict:
    """
    Decode and validate a token issued by this API.

    Token structure:
    {
        "sub": "42",
        "role": "user",
        "type": "access",
        "iat": 1234567890,
        "exp": 1234567890
    }
    """
    secret = settings.JWT_REFRESH_SECRET if refresh else settings.JWT_SECRET
    expected_type = REFRESH_TOKEN if refresh else ACCESS_TOKEN

    try:
        payload = jwt.decode(token, secret, algorithms=[settings.JWT_ALGORITHM])
    except ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
            headers={"WWW-Authenticate": "Bearer"}
        )
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"}
        )

    if payload.get("type") != expected_type or not payload.get("sub"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"}
        )

    return payload


def _extract_token(request: Request, credentials: Optional[HTTPAuthorizationCredentials]) -> Optional[str]:
    """Bearer header first, then the token cookie"""
    if credentials:
        return credentials.credentials
    return request.cookies.get("token")


def load_active_user(db: Session, user_id) -> User:
    """Fetch the token's user, rejecting unknown and deactivated accounts"""
    try:
        user = db.get(User, int(user_id))
    except (TypeError, ValueError):
        user = None

    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"}
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Account is deactivated",
            headers={"WWW-Authenticate": "Bearer"}
        )

    return user


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """
    Dependency that extracts and validates the current user from JWT.

    Usage:
        @router.get("/protected")
        async def protected_route(user: User = Depends(get_current_user)):
            return {"message": f"Hello {user.email}"}
    """
    token = _extract_token(request, credentials)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"}
        )

    payload = decode_token(token)
    return load_active_user(db, payload["sub"])


async def get_current_user_optional(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """
    Optional authentication - returns None if no valid token provided.
    """
    token = _extract_token(request, credentials)
    if not token:
        return None

    try:
        payload = decode_token(token)
        return load_active_user(db, payload["sub"])
    except HTTPException:
        return None


async def require_admin(user: User = Depends(get_current_user)) -> User:
    """
    Dependency for admin-only routes.

    Usage:
        @router.delete("/products/{product_id}")
        async def delete_product(product_id: int, admin: User = Depends(require_admin)):
            ...
    """
    if user.role != "admin":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required"
        )
    return user
