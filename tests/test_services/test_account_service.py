"""
Tests for AuthService, UserService and AddressService
"""
from datetime import timedelta
from decimal import Decimal

import pytest
from fastapi import HTTPException

from storefront.core.auth import decode_token, verify_password
from storefront.core.errors import AuthenticationFailed, ConflictError, NotFoundError, ValidationFailed
from storefront.domain.user import AddressCreate, AddressUpdate, AdminUserUpdate, ProfileUpdate, UserRegister
from storefront.models import Order
from storefront.models.mixins import utcnow
from storefront.services import AddressService, AuthService, UserService
from storefront.utils import hash_token


def address_payload(**overrides):
    values = {
        "label": "Home",
        "street": "1 Main St",
        "city": "Springfield",
        "state": "IL",
        "zip_code": "62701",
        "country": "US",
    }
    values.update(overrides)
    return AddressCreate(**values)


class TestAuthService:

    def test_register_issues_tokens_and_sends_verification(self, db, mailer):
        # Arrange
        data = UserRegister(name="  New Shopper ", email="New.Shopper@example.com", password="password1")

        # Act
        user, tokens = AuthService(db, mailer).register(data)

        # Assert
        assert user.email == "new.shopper@example.com"
        assert user.name == "New Shopper"
        assert user.role == "user"
        assert user.is_email_verified is False
        assert decode_token(tokens["token"])["sub"] == str(user.id)
        assert decode_token(tokens["refresh_token"], refresh=True)["sub"] == str(user.id)
        mailer.send_email_verification.assert_called_once_with(user, user.email_verification_token)

    def test_register_duplicate_email(self, db, mailer, user):
        data = UserRegister(name="Jane", email="JANE@example.com", password="password1")

        with pytest.raises(ConflictError, match="Email already registered"):
            AuthService(db, mailer).register(data)

    def test_login(self, db, mailer, user):
        logged_in, tokens = AuthService(db, mailer).login("Jane@Example.com", "secret123")

        assert logged_in.id == user.id
        assert logged_in.last_login_at is not None
        assert tokens["token_type"] == "bearer"

    def test_login_wrong_password(self, db, mailer, user):
        with pytest.raises(AuthenticationFailed, match="Invalid credentials"):
            AuthService(db, mailer).login(user.email, "wrong-password1")

    def test_login_deactivated(self, db, mailer, user):
        user.is_active = False
        db.commit()

        with pytest.raises(AuthenticationFailed, match="Account is deactivated"):
            AuthService(db, mailer).login(user.email, "secret123")

    def test_refresh(self, db, mailer, user):
        service = AuthService(db, mailer)
        _, tokens = service.login(user.email, "secret123")

        refreshed_user, access_token = service.refresh(tokens["refresh_token"])

        assert refreshed_user.id == user.id
        assert decode_token(access_token)["type"] == "access"

    def test_refresh_rejects_access_token(self, db, mailer, user):
        service = AuthService(db, mailer)
        _, tokens = service.login(user.email, "secret123")

        with pytest.raises(HTTPException) as exc_info:
            service.refresh(tokens["token"])
        assert exc_info.value.status_code == 401

    def test_password_reset_flow(self, db, mailer, user):
        service = AuthService(db, mailer)

        token = service.forgot_password(user.email)

        db.refresh(user)
        assert user.reset_password_token == hash_token(token)
        mailer.send_password_reset.assert_called_once_with(user, token)

        service.reset_password(token, "brandnew1")

        db.refresh(user)
        assert verify_password("brandnew1", user.password_hash)
        assert user.reset_password_token is None

        # single use
        with pytest.raises(ValidationFailed, match="Invalid or expired token"):
            service.reset_password(token, "another1")

    def test_forgot_password_unknown_email(self, db, mailer):
        with pytest.raises(NotFoundError, match="User not found"):
            AuthService(db, mailer).forgot_password("ghost@example.com")

    def test_expired_reset_token(self, db, mailer, user):
        service = AuthService(db, mailer)
        token = service.forgot_password(user.email)
        user.reset_password_expires = utcnow() - timedelta(minutes=1)
        db.commit()

        with pytest.raises(ValidationFailed, match="Invalid or expired token"):
            service.reset_password(token, "brandnew1")

    def test_verify_email(self, db, mailer):
        service = AuthService(db, mailer)
        user, _ = service.register(UserRegister(name="Sam", email="sam@example.com", password="password1"))

        service.verify_email(user.email_verification_token)

        db.refresh(user)
        assert user.is_email_verified is True
        assert user.email_verification_token is None
        with pytest.raises(ValidationFailed, match="Invalid token"):
            service.verify_email("not-a-token")


class TestUserService:

    def test_update_profile_email_resets_verification(self, db, user):
        user.is_email_verified = True
        db.commit()

        updated = UserService(db).update_profile(user, ProfileUpdate(email="Jane.New@example.com", phone="555-0100"))

        assert updated.email == "jane.new@example.com"
        assert updated.phone == "555-0100"
        assert updated.is_email_verified is False

    def test_update_profile_email_taken(self, db, user, other_user):
        with pytest.raises(ConflictError, match="Email already in use"):
            UserService(db).update_profile(user, ProfileUpdate(email=other_user.email))

    def test_change_password(self, db, user):
        service = UserService(db)

        with pytest.raises(ValidationFailed, match="Current password is incorrect"):
            service.change_password(user, "nope", "changed123")

        service.change_password(user, "secret123", "changed123")
        assert verify_password("changed123", user.password_hash)

    def test_wishlist(self, db, user, make_product):
        product = make_product()
        hidden = make_product(is_active=False)
        service = UserService(db)

        assert [p.id for p in service.add_to_wishlist(user, product.id)] == [product.id]
        with pytest.raises(ConflictError, match="Product already in wishlist"):
            service.add_to_wishlist(user, product.id)
        with pytest.raises(NotFoundError, match="Product not found"):
            service.add_to_wishlist(user, hidden.id)

        assert service.remove_from_wishlist(user, product.id) == []
        with pytest.raises(NotFoundError, match="Product not in wishlist"):
            service.remove_from_wishlist(user, product.id)

    def test_admin_update_role(self, db, user):
        updated = UserService(db).admin_update(user.id, AdminUserUpdate(role="admin", is_active=False))

        assert updated.role == "admin"
        assert updated.is_active is False

    def test_admin_delete(self, db, user, other_user):
        service = UserService(db)
        db.add(Order(
            order_number="ORD-1-001",
            user_id=user.id,
            subtotal=Decimal("10.00"),
            total=Decimal("10.00"),
            shipping_address={"city": "Springfield"},
            payment_method="credit_card",
            payment_amount=Decimal("10.00"),
        ))
        db.commit()

        with pytest.raises(ValidationFailed, match="Cannot delete user with existing orders"):
            service.admin_delete(user.id)

        service.admin_delete(other_user.id)
        db.refresh(other_user)
        assert other_user.is_active is False
        assert other_user.deleted_at is not None


class TestAddressService:

    def test_first_address_is_default(self, db, user):
        service = AddressService(db)

        first = service.create(user, address_payload())
        second = service.create(user, address_payload(label="Work"))

        assert first.is_default is True
        assert second.is_default is False

    def test_single_default(self, db, user):
        service = AddressService(db)
        first = service.create(user, address_payload())
        second = service.create(user, address_payload(label="Work", is_default=True))

        db.refresh(first)
        assert first.is_default is False
        assert second.is_default is True

        service.set_default(user, first.id)
        db.refresh(second)
        assert [a.id for a in service.list(user) if a.is_default] == [first.id]

    def test_deleting_default_promotes_oldest(self, db, user):
        service = AddressService(db)
        first = service.create(user, address_payload())
        second = service.create(user, address_payload(label="Work"))
        service.create(user, address_payload(label="Cabin"))

        service.delete(user, first.id)

        db.refresh(second)
        assert second.is_default is True

    def test_other_users_address(self, db, user, other_user):
        address = AddressService(db).create(user, address_payload())

        with pytest.raises(NotFoundError, match="Address not found"):
            AddressService(db).update(other_user, address.id, AddressUpdate(city="Shelbyville"))

    def test_update_clears_label(self, db, user):
        service = AddressService(db)
        address = service.create(user, address_payload())

        updated = service.update(user, address.id, AddressUpdate(label=None, city="Shelbyville"))

        assert updated.label is None
        assert updated.city == "Shelbyville"
