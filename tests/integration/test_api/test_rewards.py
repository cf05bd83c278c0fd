"""Integration tests for rewards, redemptions and the leaderboard."""
import pytest

from app.services.rewards import create_reward
from tests.conftest import identity_token_for


@pytest.fixture
def coffee(db_session, company):
    return create_reward(db_session, company.id, {"name": "Coffee Voucher", "points_cost": 3})


@pytest.fixture
def saver(make_user):
    return make_user(points_balance=10, total_points_earned=10)


def bearer(user):
    return {"Authorization": f"Bearer {identity_token_for(user)}"}


@pytest.mark.integration
class TestRewardsApi:

    def test_catalogue(self, client, db_session, company, coffee, auth_headers):
        create_reward(db_session, company.id, {"name": "Gift Card", "points_cost": 25, "category": "monthly"})

        rewards = client.get("/api/v1/rewards", headers=auth_headers).json()

        assert [r["name"] for r in rewards] == ["Coffee Voucher", "Gift Card"]

    def test_redeem(self, client, coffee, saver):
        response = client.post(f"/api/v1/rewards/{coffee.id}/redeem", headers=bearer(saver))

        assert response.status_code == 200
        data = response.json()
        assert data["points_balance"] == 7
        assert data["redemption"]["status"] == "pending"
        assert data["redemption"]["points_spent"] == 3

        ledger = client.get("/api/v1/users/me/transactions", headers=bearer(saver)).json()
        assert ledger[0]["transaction_type"] == "spent"
        assert ledger[0]["amount"] == -3

        mine = client.get("/api/v1/users/me/redemptions", headers=bearer(saver)).json()
        assert len(mine) == 1

    def test_insufficient_points(self, client, coffee, auth_headers):
        response = client.post(f"/api/v1/rewards/{coffee.id}/redeem", headers=auth_headers)

        assert response.status_code == 400
        assert "Insufficient points" in response.json()["detail"]

    def test_unknown_reward(self, client, company, saver):
        assert client.post("/api/v1/rewards/999/redeem", headers=bearer(saver)).status_code == 404

    def test_pending_user(self, client, coffee, make_user):
        user = make_user(status="pending", points_balance=10)
        assert client.post(f"/api/v1/rewards/{coffee.id}/redeem", headers=bearer(user)).status_code == 403


@pytest.mark.integration
class TestLeaderboardApi:

    def test_leaderboard_reflects_check_ins(self, client, company, make_user):
        leader = make_user(name="Leader", points_balance=5)
        chaser = make_user(name="Chaser", points_balance=4)

        board = client.get("/api/v1/leaderboard", headers=bearer(chaser)).json()
        assert [e["name"] for e in board] == ["Leader", "Chaser"]

        client.post("/api/v1/check-ins", json={}, headers=bearer(chaser))

        board = client.get("/api/v1/leaderboard", headers=bearer(leader)).json()
        assert [e["name"] for e in board] == ["Chaser", "Leader"]
        assert board[0]["points_balance"] == 6
        assert board[0]["rank"] == 1

    def test_limit_bounds(self, client, auth_headers):
        assert client.get("/api/v1/leaderboard?limit=1", headers=auth_headers).status_code == 200
        assert client.get("/api/v1/leaderboard?limit=1000", headers=auth_headers).status_code == 422
