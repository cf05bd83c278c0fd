"""Integration tests for the health check and shared response headers."""
from unittest.mock import Mock

import pytest
from sqlalchemy.exc import OperationalError

from app.api.deps import get_db
from app.main import app


@pytest.mark.integration
class TestHealth:

    def test_healthy(self, client, company):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["database"]["status"] == "connected"
        assert "hits" in data["cache"]
        assert "memory" in data
        assert data["check_in_config"] == "valid"

    def test_invalid_check_in_config_is_degraded(self, client, db_session, company):
        company.settings = {**company.settings, "window_start": "10:00", "window_end": "09:00"}
        db_session.commit()

        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "degraded"
        assert response.json()["check_in_config"].startswith("invalid")

    def test_missing_default_company_is_degraded(self, client):
        assert client.get("/health").json()["status"] == "degraded"

    def test_database_down(self, client):
        broken = Mock()
        broken.execute.side_effect = OperationalError("SELECT 1", {}, Exception("connection refused"))
        app.dependency_overrides[get_db] = lambda: broken

        response = client.get("/health")

        assert response.status_code == 503
        assert response.json()["detail"]["status"] == "unhealthy"

    def test_version_and_request_id_headers(self, client):
        response = client.get("/health", headers={"X-Request-ID": "probe-1"})

        assert response.headers["X-API-Version"]
        assert response.headers["X-Request-ID"] == "probe-1"
