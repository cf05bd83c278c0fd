"""Integration tests for authentication API."""
import pytest

from app.core.config import settings
from app.core.security import get_password_hash


@pytest.mark.integration
class TestAdminAuth:
    """Test admin authentication endpoints."""

    def test_admin_login_success(self, client, company, monkeypatch):
        """Valid password should set JWT token in cookie."""
        monkeypatch.setattr(settings, "ADMIN_PASSWORD", "testpass123")

        response = client.post("/api/v1/auth/admin/login", json={"password": "testpass123"})

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert "admin_token" in response.cookies

        # The cookie alone is enough for admin endpoints
        assert client.get("/api/v1/admin/settings").status_code == 200

    def test_admin_login_hashed_password(self, client, monkeypatch):
        monkeypatch.setattr(settings, "ADMIN_PASSWORD", get_password_hash("testpass123"))

        response = client.post("/api/v1/auth/admin/login", json={"password": "testpass123"})

        assert response.status_code == 200

    def test_admin_login_invalid_password(self, client, monkeypatch):
        """Invalid password should return 401."""
        monkeypatch.setattr(settings, "ADMIN_PASSWORD", "testpass123")

        response = client.post("/api/v1/auth/admin/login", json={"password": "wrongpass"})

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid password"
        assert "admin_token" not in response.cookies

    def test_admin_logout(self, admin_client, company):
        response = admin_client.post("/api/v1/auth/admin/logout")

        assert response.status_code == 200
        set_cookie = response.headers["set-cookie"]
        assert set_cookie.startswith("admin_token=")
        assert "Max-Age=0" in set_cookie

    def test_tampered_cookie(self, client, company, admin_token):
        client.cookies.set("admin_token", admin_token[:-2] + "xx")
        assert client.get("/api/v1/admin/settings").status_code == 401
