"""
Tests for the /api/v1/auth and /api/v1/users endpoints
"""
from unittest.mock import patch

from storefront.core.auth import create_refresh_token


class TestRegisterAndLogin:

    def test_register(self, client, mailer):
        # Arrange
        payload = {"name": "Sam Shopper", "email": "sam@example.com", "password": "password1"}

        # Act
        response = client.post("/api/v1/auth/register", json=payload)

        # Assert
        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "success"
        assert body["message"] == "Registration successful"
        assert body["data"]["user"]["email"] == "sam@example.com"
        assert "password_hash" not in body["data"]["user"]
        assert body["data"]["token"]
        assert body["data"]["refresh_token"]
        mailer.send_email_verification.assert_called_once()

    def test_register_duplicate(self, client, user):
        response = client.post(
            "/api/v1/auth/register",
            json={"name": "Jane", "email": user.email, "password": "password1"},
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Email already registered"

    def test_register_weak_password(self, client):
        response = client.post(
            "/api/v1/auth/register",
            json={"name": "Sam", "email": "sam@example.com", "password": "short"},
        )

        body = response.json()
        assert response.status_code == 400
        assert body["status"] == "error"
        assert body["message"] == "Validation failed"
        assert [error["field"] for error in body["errors"]] == ["password"]

    def test_login_and_me(self, client, user):
        login = client.post("/api/v1/auth/login", json={"email": user.email, "password": "secret123"})
        token = login.json()["data"]["token"]

        me = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert login.status_code == 200
        assert me.status_code == 200
        assert me.json()["data"]["id"] == user.id

    def test_token_cookie(self, client, user):
        login = client.post("/api/v1/auth/login", json={"email": user.email, "password": "secret123"})
        client.cookies.set("token", login.json()["data"]["token"])

        me = client.get("/api/v1/auth/me")

        assert me.status_code == 200

    def test_login_invalid_credentials(self, client, user):
        response = client.post("/api/v1/auth/login", json={"email": user.email, "password": "wrong"})

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid credentials"

    def test_me_requires_token(self, client):
        response = client.get("/api/v1/auth/me")

        assert response.status_code == 401
        assert response.json()["message"] == "Authentication required"

    def test_me_rejects_garbage_token(self, client):
        response = client.get("/api/v1/auth/me", headers={"Authorization": "Bearer not.a.token"})

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid token"

    def test_refresh_token(self, client, user):
        response = client.post("/api/v1/auth/refresh-token", json={"refresh_token": create_refresh_token(user)})

        assert response.status_code == 200
        token = response.json()["data"]["token"]
        assert client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"}).status_code == 200

    def test_logout(self, client, auth_headers):
        response = client.post("/api/v1/auth/logout", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["message"] == "Logged out successfully"


class TestPasswordReset:

    def test_forgot_and_reset(self, client, user, mailer):
        response = client.post("/api/v1/auth/forgot-password", json={"email": user.email})
        assert response.status_code == 200

        token = mailer.send_password_reset.call_args[0][1]
        reset = client.post(f"/api/v1/auth/reset-password/{token}", json={"password": "newpassword9"})
        login = client.post("/api/v1/auth/login", json={"email": user.email, "password": "newpassword9"})

        assert reset.status_code == 200
        assert login.status_code == 200

    def test_forgot_unknown_email(self, client):
        response = client.post("/api/v1/auth/forgot-password", json={"email": "ghost@example.com"})

        assert response.status_code == 404

    def test_reset_with_bad_token(self, client, user):
        response = client.post("/api/v1/auth/reset-password/bogus", json={"password": "newpassword9"})

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid or expired token"

    def test_mail_failure_does_not_fail_request(self, client, user, mailer):
        mailer.send_password_reset.side_effect = OSError("connection refused")

        with patch("storefront.services.notifications.logger") as logger:
            response = client.post("/api/v1/auth/forgot-password", json={"email": user.email})

        assert response.status_code == 200
        logger.error.assert_called_once()


class TestProfile:

    def test_update_profile(self, client, auth_headers):
        response = client.put("/api/v1/users/profile", json={"name": "Jane Q. Doe"}, headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["data"]["name"] == "Jane Q. Doe"

    def test_change_password(self, client, user, auth_headers):
        response = client.put(
            "/api/v1/users/change-password",
            json={"current_password": "secret123", "new_password": "evenbetter42"},
            headers=auth_headers,
        )
        login = client.post("/api/v1/auth/login", json={"email": user.email, "password": "evenbetter42"})

        assert response.status_code == 200
        assert login.status_code == 200

    def test_wishlist(self, client, auth_headers, make_product):
        product = make_product()

        added = client.post(f"/api/v1/users/wishlist/{product.id}", headers=auth_headers)
        listed = client.get("/api/v1/users/wishlist", headers=auth_headers)
        removed = client.delete(f"/api/v1/users/wishlist/{product.id}", headers=auth_headers)

        assert added.status_code == 200
        assert [p["id"] for p in listed.json()["data"]] == [product.id]
        assert removed.json()["data"] == []

    def test_addresses(self, client, auth_headers):
        address = {
            "street": "1 Main St",
            "city": "Springfield",
            "state": "IL",
            "zip_code": "62701",
            "country": "US",
        }

        first = client.post("/api/v1/addresses/", json=address, headers=auth_headers)
        second = client.post("/api/v1/addresses/", json={**address, "label": "Work"}, headers=auth_headers)
        client.put(f"/api/v1/addresses/{second.json()['data']['id']}/default", headers=auth_headers)
        listed = client.get("/api/v1/addresses/", headers=auth_headers).json()["data"]

        assert first.status_code == 201
        assert listed[0]["label"] == "Work"
        assert listed[0]["is_default"] is True
        assert listed[1]["is_default"] is False
