"""Test rate limiting functionality."""
import pytest

from app.core.rate_limit import RATE_LIMITS
from app.core.security import create_access_token


def limit_count(name):
    return int(RATE_LIMITS[name].split("/")[0])


@pytest.mark.integration
@pytest.mark.rate_limit
class TestRateLimiting:

    def test_admin_login_rate_limit(self, client):
        """Brute forcing the admin password is cut off after the limit."""
        for i in range(limit_count("admin_login")):
            response = client.post("/api/v1/auth/admin/login", json={"password": "wrong"})
            assert response.status_code == 401, f"Request {i + 1} should reach the password check"

        response = client.post("/api/v1/auth/admin/login", json={"password": "wrong"})
        assert response.status_code == 429

    def test_register_rate_limit(self, client, company):
        token = create_access_token({"sub": "ext-rl", "email": "rl@example.com"})
        headers = {"Authorization": f"Bearer {token}"}

        for i in range(limit_count("register")):
            assert client.post("/api/v1/users/register", headers=headers).status_code == 200

        assert client.post("/api/v1/users/register", headers=headers).status_code == 429

    def test_limits_are_per_client_ip(self, client):
        for _ in range(limit_count("admin_login")):
            client.post("/api/v1/auth/admin/login", json={"password": "wrong"},
                        headers={"X-Forwarded-For": "10.0.0.1"})

        response = client.post("/api/v1/auth/admin/login", json={"password": "wrong"},
                               headers={"X-Forwarded-For": "10.0.0.2"})
        assert response.status_code == 401
