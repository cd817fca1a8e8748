"""HTTP tests for the /api/v1/auth endpoints."""

from __future__ import annotations

import pytest
from tests.factories.user import DEFAULT_PASSWORD, UserFactory

BASE = "/api/v1/auth"


def _register(client, username="erin", email="erin@example.com", password="Passw0rd!"):
    return client.post(
        f"{BASE}/register", json={"username": username, "email": email, "password": password}
    )


def _bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def tokens(client, session):
    user = UserFactory(email="frank@example.com", username="frank")
    session.commit()
    response = client.post(f"{BASE}/login", json={"email": user.email, "password": DEFAULT_PASSWORD})
    assert response.status_code == 200
    return response.get_json()["data"]


class TestRegister:
    def test_created(self, client):
        response = _register(client)

        assert response.status_code == 201
        data = response.get_json()["data"]
        assert data["user"]["username"] == "erin"
        assert data["user"]["emailVerified"] is False
        assert "passwordHash" not in data["user"]
        assert set(data["tokens"]) == {"accessToken", "refreshToken", "expiresInSeconds"}
        assert data["tokens"]["expiresInSeconds"] == 900

    def test_duplicate_email(self, client):
        _register(client)
        response = _register(client, username="erin2", email="ERIN@example.com")

        assert response.status_code == 409
        problem = response.get_json()
        assert response.mimetype == "application/problem+json"
        assert problem["details"] == {"field": "email"}

    def test_duplicate_username(self, client):
        _register(client)
        response = _register(client, email="other@example.com")

        assert response.status_code == 409
        assert response.get_json()["details"] == {"field": "username"}

    @pytest.mark.parametrize(
        "payload",
        [
            {"username": "ab", "email": "a@example.com", "password": "Passw0rd!"},
            {"username": "bad name", "email": "a@example.com", "password": "Passw0rd!"},
            {"username": "valid_name", "email": "not-an-email", "password": "Passw0rd!"},
            {"username": "valid_name", "email": "a@example.com", "password": "short1A"},
            {"username": "valid_name", "email": "a@example.com", "password": "alllowercase1"},
            {"username": "valid_name", "email": "a@example.com"},
        ],
    )
    def test_validation_errors(self, client, payload):
        response = client.post(f"{BASE}/register", json=payload)
        assert response.status_code == 422
        assert response.get_json()["code"] == "validation_error"


class TestLogin:
    def test_wrong_password(self, client, session):
        user = UserFactory()
        session.commit()
        response = client.post(f"{BASE}/login", json={"email": user.email, "password": "Wrong-pass1"})

        assert response.status_code == 401
        assert response.get_json()["detail"] == "Invalid email or password."

    def test_unknown_email_is_indistinguishable(self, client):
        response = client.post(f"{BASE}/login", json={"email": "ghost@example.com", "password": "Wrong-pass1"})

        assert response.status_code == 401
        assert response.get_json()["detail"] == "Invalid email or password."


class TestRefresh:
    def test_rotation_is_single_use(self, client, tokens):
        body = {"accessToken": tokens["accessToken"], "refreshToken": tokens["refreshToken"]}

        first = client.post(f"{BASE}/refresh", json=body)
        assert first.status_code == 200
        assert first.get_json()["data"]["refreshToken"] != tokens["refreshToken"]

        replay = client.post(f"{BASE}/refresh", json=body)
        assert replay.status_code == 401

    def test_forged_access_token(self, client, tokens):
        body = {"accessToken": tokens["accessToken"] + "x", "refreshToken": tokens["refreshToken"]}
        response = client.post(f"{BASE}/refresh", json=body)
        assert response.status_code == 401

    def test_missing_fields(self, client):
        assert client.post(f"{BASE}/refresh", json={}).status_code == 422


class TestMeAndLogout:
    def test_me(self, client, tokens):
        response = client.get(f"{BASE}/me", headers=_bearer(tokens["accessToken"]))

        assert response.status_code == 200
        assert response.get_json()["data"]["email"] == "frank@example.com"

    @pytest.mark.parametrize("headers", [{}, {"Authorization": "Basic abc"}, {"Authorization": "Bearer "}])
    def test_me_requires_bearer_token(self, client, headers):
        assert client.get(f"{BASE}/me", headers=headers).status_code == 401

    def test_me_rejects_garbage_token(self, client):
        response = client.get(f"{BASE}/me", headers=_bearer("not.a.jwt"))
        assert response.status_code == 401
        assert response.get_json()["detail"] == "Invalid or expired token."

    def test_logout_revokes_refresh_token(self, client, tokens):
        response = client.post(
            f"{BASE}/logout",
            json={"refreshToken": tokens["refreshToken"]},
            headers=_bearer(tokens["accessToken"]),
        )
        assert response.status_code == 204

        refresh = client.post(
            f"{BASE}/refresh",
            json={"accessToken": tokens["accessToken"], "refreshToken": tokens["refreshToken"]},
        )
        assert refresh.status_code == 401

    def test_logout_requires_auth(self, client, tokens):
        response = client.post(f"{BASE}/logout", json={"refreshToken": tokens["refreshToken"]})
        assert response.status_code == 401
