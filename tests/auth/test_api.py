"""Tests for auth API routes."""

import pytest
import responses
from starlette.testclient import TestClient

from api.app import build_services, create_app

API = "https://billing.test.local/api/v1"


@pytest.fixture
def services(config, valkey):
    return build_services(config, valkey)


@pytest.fixture
def client(services):
    return TestClient(create_app(services), raise_server_exceptions=False)


class TestLogin:

    @responses.activate
    def test_login_stores_token(self, client, services):
        responses.add(responses.POST, f"{API}/auth/login",
                      json={"tokens": {"accessToken": "a1", "refreshToken": "r1"}})

        response = client.post("/api/auth/login", json={"email": "owner@acme.test", "password": "pw"})

        assert response.status_code == 200
        assert response.json()["data"] == {"authenticated": True, "email": "owner@acme.test"}
        assert services["token_store"].get_access_token() == "a1"

    @responses.activate
    def test_bad_credentials_return_401(self, client):
        responses.add(responses.POST, f"{API}/auth/login", status=401,
                      json={"message": "Invalid email or password"})

        response = client.post("/api/auth/login", json={"email": "owner@acme.test", "password": "nope"})

        assert response.status_code == 401
        body = response.json()
        assert body["success"] is False
        assert body["error"]["code"] == "INVALID_CREDENTIALS"

    def test_invalid_email_returns_422(self, client):
        response = client.post("/api/auth/login", json={"email": "nope", "password": "pw"})

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    @responses.activate
    def test_backend_down_returns_503(self, client):
        response = client.post("/api/auth/login", json={"email": "owner@acme.test", "password": "pw"})

        assert response.status_code == 503
        assert response.json()["error"]["code"] == "BACKEND_UNAVAILABLE"


class TestRegister:

    @responses.activate
    def test_register_without_tokens(self, client):
        responses.add(responses.POST, f"{API}/auth/register", status=201, json={"user": {"id": "u1"}})

        response = client.post("/api/auth/register", json={
            "email": "owner@acme.test",
            "password": "s3cret-pass",
            "firstName": "Asha",
            "companyName": "Acme Ltd",
            "companySlug": "acme",
        })

        assert response.status_code == 200
        assert response.json()["data"] == {"registered": True, "authenticated": False}


class TestStatusAndLogout:

    def test_status_logged_out(self, client):
        response = client.get("/api/auth/status")
        assert response.json()["data"] == {"authenticated": False}

    def test_logout_locks_protected_routes(self, client, services):
        services["token_store"].set_tokens("a1")
        assert client.get("/api/auth/status").json()["data"]["authenticated"] is True

        client.post("/api/auth/logout")

        response = client.get("/api/data", params={"type": "customers"})
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "NOT_AUTHENTICATED"
