"""Integration tests for the check-in API."""
from unittest.mock import patch

import pytest

from app.core.exceptions import PersistenceError
from tests.conftest import denver, identity_token_for


def bearer(user):
    return {"Authorization": f"Bearer {identity_token_for(user)}"}


@pytest.mark.integration
class TestCheckInEndpoint:

    def test_early_check_in(self, client, auth_headers):
        response = client.post("/api/v1/check-ins", json={}, headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["classification"] == "early"
        assert data["base_points"] == 2
        assert data["bonus_points"] == 0
        assert data["total_points"] == 2
        assert data["streak_day"] == 1
        assert data["points_balance"] == 2
        assert data["local_date"] == "2025-06-02"
        assert data["message"] == "Check-in successful! You earned 2 points for checking in early!"
        assert data["quote"]["author"]

    def test_seventh_day_bonus(self, client, make_user, company, clock):
        user = make_user(current_streak=6, longest_streak=6, last_check_in_time=denver(2025, 6, 1, 7, 30))
        clock.now = denver(2025, 6, 2, 7, 50)

        data = client.post("/api/v1/check-ins", json={}, headers=bearer(user)).json()

        assert data["classification"] == "ontime"
        assert data["streak_day"] == 7
        assert data["bonus_points"] == 5
        assert data["total_points"] == 6
        assert "perfect week" in data["bonus_reasons"]

    def test_duplicate_returns_409(self, client, auth_headers, clock):
        client.post("/api/v1/check-ins", json={}, headers=auth_headers)
        clock.now = denver(2025, 6, 2, 8, 30)

        response = client.post("/api/v1/check-ins", json={}, headers=auth_headers)

        assert response.status_code == 409
        assert response.json()["detail"]["code"] == "already_checked_in"

        me = client.get("/api/v1/users/me", headers=auth_headers).json()
        assert me["points_balance"] == 2
        assert me["total_check_ins"] == 1

    def test_outside_window_returns_400(self, client, auth_headers, clock):
        clock.now = denver(2025, 6, 2, 5, 30)

        response = client.post("/api/v1/check-ins", json={}, headers=auth_headers)

        assert response.status_code == 400
        detail = response.json()["detail"]
        assert detail["code"] == "outside_window"
        assert detail["local_time"] == "05:30"
        assert detail["window"] == "06:00-09:00 America/Denver"

    def test_next_day_continues_streak(self, client, auth_headers, clock):
        client.post("/api/v1/check-ins", json={}, headers=auth_headers)
        clock.now = denver(2025, 6, 3, 8, 45)

        data = client.post("/api/v1/check-ins", json={}, headers=auth_headers).json()

        assert data["streak_day"] == 2
        assert data["classification"] == "late"
        assert data["message"].endswith("You made it, keep improving.")

    def test_pending_user_gets_403(self, client, company, make_user):
        user = make_user(status="pending")
        response = client.post("/api/v1/check-ins", json={}, headers=bearer(user))
        assert response.status_code == 403

    def test_unregistered_identity_gets_404(self, client, company):
        from app.core.security import create_access_token

        token = create_access_token({"sub": "nobody", "email": "nobody@example.com"})
        response = client.post("/api/v1/check-ins", json={}, headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 404
        assert response.json()["detail"] == "User not registered"

    def test_missing_token_gets_401(self, client, company):
        assert client.post("/api/v1/check-ins", json={}).status_code == 401

    def test_broken_config_gets_500(self, client, db_session, company, auth_headers):
        company.settings = {**company.settings, "early_cutoff": "05:00"}
        db_session.commit()

        response = client.post("/api/v1/check-ins", json={}, headers=auth_headers)

        assert response.status_code == 500
        assert "misconfigured" in response.json()["detail"]

    def test_failed_save_gets_503(self, client, auth_headers):
        with patch("app.api.v1.endpoints.checkins.perform_check_in",
                   side_effect=PersistenceError(PersistenceError.user_message)):
            response = client.post("/api/v1/check-ins", json={}, headers=auth_headers)

        assert response.status_code == 503
        assert response.json()["detail"] == PersistenceError.user_message


@pytest.mark.integration
class TestCheckInWithQrCode:

    def test_valid_code(self, client, qr_code, make_user):
        user = make_user()
        response = client.post("/api/v1/check-ins", json={"qr_code": qr_code.code}, headers=bearer(user))
        assert response.status_code == 200

    def test_unknown_code(self, client, qr_code, make_user):
        user = make_user()
        response = client.post("/api/v1/check-ins", json={"qr_code": "SK2025-ZZZZZZZZ"}, headers=bearer(user))

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "invalid_qr_code"

    def test_missing_code(self, client, qr_code, make_user):
        user = make_user()
        response = client.post("/api/v1/check-ins", json={}, headers=bearer(user))
        assert response.json()["detail"]["code"] == "invalid_qr_code"

    def test_malformed_code_fails_validation(self, client, qr_code, make_user):
        user = make_user()
        response = client.post("/api/v1/check-ins", json={"qr_code": "<script>"}, headers=bearer(user))
        assert response.status_code == 422


@pytest.mark.integration
class TestTodayEndpoint:

    def test_before_check_in(self, client, auth_headers):
        data = client.get("/api/v1/check-ins/today", headers=auth_headers).json()

        assert data["checked_in"] is False
        assert data["check_in"] is None
        assert data["window_open"] is True
        assert data["local_time"] == "07:00"
        assert data["timezone"] == "America/Denver"

    def test_after_check_in(self, client, auth_headers, clock):
        client.post("/api/v1/check-ins", json={}, headers=auth_headers)
        clock.now = denver(2025, 6, 2, 10, 0)

        data = client.get("/api/v1/check-ins/today", headers=auth_headers).json()

        assert data["checked_in"] is True
        assert data["check_in"]["total_points"] == 2
        assert data["window_open"] is False
