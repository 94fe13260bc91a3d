"""
Authentication API Endpoints
Registration, login, token refresh, password reset and email verification
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from storefront.api.responses import success
from storefront.connectors.mailer import Mailer, get_mailer
from storefront.core.auth import get_current_user
from storefront.core.database import get_db
from storefront.core.rate_limit import rate_limit
from storefront.domain.user import (
    ForgotPasswordRequest,
    RefreshTokenRequest,
    ResetPasswordRequest,
    UserLogin,
    UserRegister,
    UserResponse,
)
from storefront.models import User
from storefront.services import AuthService

router = APIRouter()


@router.post("/register", status_code=status.HTTP_201_CREATED, dependencies=[Depends(rate_limit(10))])
async def register(
    payload: UserRegister,
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    """
    Create an account

    Sends a verification email and returns the user with access and refresh tokens.
    """
    user, tokens = AuthService(db, mailer).register(payload)
    return success(
        {"user": UserResponse.model_validate(user).to_dict(), **tokens},
        message="Registration successful",
    )


@router.post("/login", dependencies=[Depends(rate_limit(10))])
async def login(
    payload: UserLogin,
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    user, tokens = AuthService(db, mailer).login(payload.email, payload.password)
    return success({"user": UserResponse.model_validate(user).to_dict(), **tokens})


@router.post("/logout")
async def logout(user: User = Depends(get_current_user)):
    """Tokens are stateless; the client discards them"""
    return success(message="Logged out successfully")


@router.post("/refresh-token")
async def refresh_token(
    payload: RefreshTokenRequest,
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    user, token = AuthService(db, mailer).refresh(payload.refresh_token)
    return success({"token": token, "token_type": "bearer"})


@router.post("/forgot-password", dependencies=[Depends(rate_limit(5))])
async def forgot_password(
    payload: ForgotPasswordRequest,
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    AuthService(db, mailer).forgot_password(payload.email)
    return success(message="Password reset email sent")


@router.post("/reset-password/{token}")
async def reset_password(
    token: str,
    payload: ResetPasswordRequest,
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    AuthService(db, mailer).reset_password(token, payload.password)
    return success(message="Password reset successful")


@router.get("/verify-email/{token}")
async def verify_email(
    token: str,
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    AuthService(db, mailer).verify_email(token)
    return success(message="Email verified successfully")


@router.get("/me")
async def me(user: User = Depends(get_current_user)):
    return success(UserResponse.model_validate(user).to_dict())
