"""HTTP tests for the /api/v1/users and /api/v1/health endpoints."""

from __future__ import annotations

import pytest
from tests.factories.user import DEFAULT_PASSWORD, UserFactory

BASE = "/api/v1/users"


@pytest.fixture()
def account(client, session):
    user = UserFactory(email="gina@example.com", username="gina")
    session.commit()
    response = client.post(
        "/api/v1/auth/login", json={"email": user.email, "password": DEFAULT_PASSWORD}
    )
    tokens = response.get_json()["data"]
    return {"headers": {"Authorization": f"Bearer {tokens['accessToken']}"}, **tokens}


def test_health(client):
    response = client.get("/api/v1/health")
    assert response.status_code == 200
    assert response.get_json()["status"] == "ok"


def test_unknown_route_is_a_problem(client):
    response = client.get("/api/v1/nope/nothing")
    assert response.status_code == 404
    assert response.mimetype == "application/problem+json"


class TestPublicEndpoints:
    def test_check_username(self, client, account):
        taken = client.get(f"{BASE}/check-username/gina").get_json()["data"]
        free = client.get(f"{BASE}/check-username/someone_else").get_json()["data"]

        assert taken == {"username": "gina", "available": False}
        assert free == {"username": "someone_else", "available": True}

    def test_public_profile_hides_email(self, client, account):
        response = client.get(f"{BASE}/gina")

        assert response.status_code == 200
        data = response.get_json()["data"]
        assert data["username"] == "gina"
        assert "email" not in data

    def test_public_profile_missing(self, client):
        assert client.get(f"{BASE}/ghost").status_code == 404


class TestPasswordChange:
    def test_changes_password(self, client, account):
        response = client.put(
            f"{BASE}/me/password",
            json={"currentPassword": DEFAULT_PASSWORD, "newPassword": "Br4nd-new-pass"},
            headers=account["headers"],
        )
        assert response.status_code == 204

        login = client.post(
            "/api/v1/auth/login", json={"email": "gina@example.com", "password": "Br4nd-new-pass"}
        )
        assert login.status_code == 200

    def test_wrong_current_password(self, client, account):
        response = client.put(
            f"{BASE}/me/password",
            json={"currentPassword": "Wrong-pass1", "newPassword": "Br4nd-new-pass"},
            headers=account["headers"],
        )
        assert response.status_code == 401
        assert response.get_json()["detail"] == "Current password is incorrect."

    def test_weak_new_password(self, client, account):
        response = client.put(
            f"{BASE}/me/password",
            json={"currentPassword": DEFAULT_PASSWORD, "newPassword": "weakpass"},
            headers=account["headers"],
        )
        assert response.status_code == 422


class TestDeleteAccount:
    def test_deletes_account(self, client, account):
        response = client.delete(
            f"{BASE}/me", json={"password": DEFAULT_PASSWORD}, headers=account["headers"]
        )
        assert response.status_code == 204

        assert client.get(f"{BASE}/gina").status_code == 404
        refresh = client.post(
            "/api/v1/auth/refresh",
            json={"accessToken": account["accessToken"], "refreshToken": account["refreshToken"]},
        )
        assert refresh.status_code == 401
        assert client.get("/api/v1/auth/me", headers=account["headers"]).status_code == 404

    def test_wrong_password(self, client, account):
        response = client.delete(f"{BASE}/me", json={"password": "Wrong-pass1"}, headers=account["headers"])
        assert response.status_code == 401
        assert client.get(f"{BASE}/gina").status_code == 200
