"""
Auth Service
Registration, login, token refresh, password reset and email verification
"""
import logging
from datetime import timedelta
from typing import Tuple

from sqlalchemy.orm import Session

from storefront.connectors.mailer import Mailer
from storefront.core.auth import (
    create_access_token,
    create_refresh_token,
    decode_token,
    hash_password,
    load_active_user,
    verify_password,
)
from storefront.core.config import settings
from storefront.core.errors import AuthenticationFailed, ConflictError, NotFoundError, ValidationFailed
from storefront.domain.user import UserRegister
from storefront.models import User
from storefront.models.mixins import utcnow
from storefront.repositories import UserRepository
from storefront.services.notifications import notify
from storefront.utils import generate_token, hash_token

logger = logging.getLogger(__name__)


class AuthService:
    """Account lifecycle operations"""

    def __init__(self, db: Session, mailer: Mailer):
        self.db = db
        self.mailer = mailer
        self.users = UserRepository(db)

    @staticmethod
    def issue_tokens(user: User) -> dict:
        return {
            "token": create_access_token(user),
            "refresh_token": create_refresh_token(user),
            "token_type": "bearer",
        }

    def register(self, data: UserRegister) -> Tuple[User, dict]:
        """
        Create an account and send the verification email

        Raises:
            ConflictError: Email already registered
        """
        email = data.email.lower()
        if self.users.email_taken(email):
            raise ConflictError("Email already registered")

        verification_token = generate_token()
        user = User(
            name=data.name,
            email=email,
            password_hash=hash_password(data.password),
            role="user",
            is_active=True,
            is_email_verified=False,
            email_verification_token=verification_token,
        )
        self.users.add(user)
        self.db.commit()
        self.db.refresh(user)

        logger.info(f"User registered: {user.id} ({user.email})")
        notify(self.mailer.send_email_verification, user, verification_token)

        return user, self.issue_tokens(user)

    def login(self, email: str, password: str) -> Tuple[User, dict]:
        user = self.users.find_by_email(email)
        if user is None or not verify_password(password, user.password_hash):
            logger.info(f"Failed login for {email}")
            raise AuthenticationFailed("Invalid credentials")

        if not user.is_active:
            raise AuthenticationFailed("Account is deactivated")

        user.last_login_at = utcnow()
        self.db.commit()
        self.db.refresh(user)

        return user, self.issue_tokens(user)

    def refresh(self, refresh_token: str) -> Tuple[User, str]:
        """
        Exchange a refresh token for a new access token

        Raises:
            HTTPException 401: Invalid/expired token, unknown or inactive user
        """
        payload = decode_token(refresh_token, refresh=True)
        user = load_active_user(self.db, payload["sub"])
        return user, create_access_token(user)

    def forgot_password(self, email: str) -> str:
        """
        Store a reset token (hashed) and email the raw token

        Returns:
            The raw reset token
        """
        user = self.users.find_by_email(email)
        if user is None:
            raise NotFoundError("User not found")

        token = generate_token()
        user.reset_password_token = hash_token(token)
        user.reset_password_expires = utcnow() + timedelta(minutes=settings.PASSWORD_RESET_EXPIRE_MINUTES)
        self.db.commit()

        logger.info(f"Password reset requested for user {user.id}")
        notify(self.mailer.send_password_reset, user, token)
        return token

    def reset_password(self, token: str, password: str) -> User:
        user = self.users.find_by_reset_token(hash_token(token))
        if user is None or user.reset_password_expires is None or user.reset_password_expires < utcnow():
            raise ValidationFailed("Invalid or expired token")

        user.password_hash = hash_password(password)
        user.reset_password_token = None
        user.reset_password_expires = None
        self.db.commit()

        logger.info(f"Password reset for user {user.id}")
        return user

    def verify_email(self, token: str) -> User:
        user = self.users.find_by_verification_token(token)
        if user is None:
            raise ValidationFailed("Invalid token")

        user.is_email_verified = True
        user.email_verification_token = None
        self.db.commit()
        return user
