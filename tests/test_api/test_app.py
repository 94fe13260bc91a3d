"""
Tests for application-level behavior: root and health endpoints,
error envelopes and rate limiting
"""
from unittest.mock import patch

from sqlalchemy.exc import OperationalError

from storefront.core.config import settings


class TestRoot:

    def test_root(self, client):
        body = client.get("/").json()

        assert body["status"] == "online"
        assert body["version"] == settings.API_VERSION

    def test_unknown_route(self, client):
        response = client.get("/api/v1/nothing-here")

        assert response.status_code == 404
        assert response.json()["status"] == "error"
        assert response.json()["path"] == "/api/v1/nothing-here"


class TestHealth:

    def test_healthy(self, client):
        with patch("storefront.main.check_connection_with_retry", return_value=1.5):
            body = client.get("/health").json()

        assert body["status"] == "healthy"
        assert body["database"] == {"status": "connected", "latency_ms": 1.5, "error": None}

    def test_degraded(self, client):
        error = OperationalError("SELECT 1", {}, Exception("connection refused"))

        with patch("storefront.main.check_connection_with_retry", side_effect=error):
            body = client.get("/health").json()

        assert body["status"] == "degraded"
        assert body["database"]["status"] == "disconnected"
        assert "connection refused" in body["database"]["error"]


class TestRateLimiting:

    def test_anonymous_limit(self, client, monkeypatch):
        monkeypatch.setattr(settings, "RATE_LIMIT_ENABLED", True)
        monkeypatch.setattr(settings, "RATE_LIMIT_ANONYMOUS", 2)

        first = client.get("/api/v1/products/")
        second = client.get("/api/v1/products/")
        third = client.get("/api/v1/products/")

        assert first.headers["X-RateLimit-Remaining"] == "1"
        assert second.status_code == 200
        assert third.status_code == 429
        assert third.headers["Retry-After"]

    def test_health_is_exempt(self, client, monkeypatch):
        monkeypatch.setattr(settings, "RATE_LIMIT_ENABLED", True)
        monkeypatch.setattr(settings, "RATE_LIMIT_ANONYMOUS", 1)

        with patch("storefront.main.check_connection_with_retry", return_value=1.0):
            responses = [client.get("/health") for _ in range(3)]

        assert all(r.status_code == 200 for r in responses)

    def test_login_endpoint_limit(self, client, user, monkeypatch):
        monkeypatch.setattr(settings, "RATE_LIMIT_ENABLED", True)
        monkeypatch.setattr(settings, "RATE_LIMIT_ANONYMOUS", 1000)

        responses = [
            client.post("/api/v1/auth/login", json={"email": user.email, "password": "wrong"})
            for _ in range(11)
        ]

        assert [r.status_code for r in responses[:10]] == [401] * 10
        assert responses[10].status_code == 429
        assert responses[10].json()["message"].startswith("Too many attempts")
