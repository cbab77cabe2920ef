"""
test_auth_routes.py - auto-login and user endpoints
"""

from datetime import timedelta

import pytest


@pytest.fixture(autouse=True)
def no_site_url_env(monkeypatch):
    monkeypatch.delenv("SITE_URL", raising=False)


@pytest.fixture
def user(client) -> dict:
    response = client.post(
        "/api/auth/register",
        json={"email": "grace@example.com", "password": "cobol", "name": "Grace"},
    )
    assert response.status_code == 201
    return response.json()["user"]


class TestUsers:
    def test_register_hides_hash(self, user):
        assert set(user) == {"id", "email", "name", "role"}

    def test_duplicate_409(self, client, user):
        response = client.post(
            "/api/auth/register", json={"email": "grace@example.com", "password": "x"}
        )

        assert response.status_code == 409
        assert response.json() == {"error": "An account with this email already exists"}

    def test_register_missing_fields_400(self, client):
        assert client.post("/api/auth/register", json={"email": "a@b.c"}).status_code == 400

    def test_login(self, client, user):
        response = client.post(
            "/api/auth/login", json={"email": "grace@example.com", "password": "cobol"}
        )

        assert response.status_code == 200
        assert response.json()["user"]["id"] == user["id"]

    def test_login_wrong_password_401(self, client, user):
        response = client.post(
            "/api/auth/login", json={"email": "grace@example.com", "password": "fortran"}
        )

        assert response.status_code == 401
        assert response.json() == {"error": "Invalid email or password"}


class TestAutoLogin:
    def test_issue_and_redeem(self, client, user):
        issued = client.post("/api/auto-login", json={"user_id": user["id"]})

        assert issued.status_code == 200
        body = issued.json()
        assert body["success"] is True
        assert body["login_url"] == f"http://interview.test/auto-login?token={body['token']}"

        redeemed = client.post("/api/auto-login/redeem", json={"token": body["token"]})
        assert redeemed.status_code == 200
        assert redeemed.json()["user"]["email"] == "grace@example.com"

        again = client.post("/api/auto-login/redeem", json={"token": body["token"]})
        assert again.status_code == 401
        assert again.json() == {"error": "Invalid token"}

    def test_missing_user_id_400(self, client):
        response = client.post("/api/auto-login", json={})

        assert response.status_code == 400
        assert response.json() == {"error": "user_id is required"}

    def test_unknown_user_401(self, client):
        response = client.post("/api/auto-login", json={"user_id": "ghost"})

        assert response.status_code == 401
        assert response.json() == {"error": "Invalid user_id"}

    @pytest.mark.parametrize("method", ["GET", "PUT", "PATCH", "DELETE"])
    def test_other_methods_405(self, client, method):
        response = client.request(method, "/api/auto-login")

        assert response.status_code == 405
        assert response.json() == {"error": "Method not allowed"}

    def test_expired_token_401(self, client, app, user, now):
        app.state.clock = lambda: now
        token = client.post("/api/auto-login", json={"user_id": user["id"]}).json()["token"]

        app.state.clock = lambda: now + timedelta(minutes=6)
        response = client.post("/api/auto-login/redeem", json={"token": token})

        assert response.status_code == 401
        assert response.json() == {"error": "Token expired"}
