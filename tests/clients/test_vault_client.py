"""Tests for VaultClient - AppRole auth and billing/ scoped secrets."""

from unittest.mock import MagicMock, patch

import hvac
import pytest

import clients.vault_client as vault_module
from clients.vault_client import VaultClient, get_backend_url, get_valkey_url

VAULT_ENV = {
    "VAULT_ADDR": "https://vault.test.local",
    "VAULT_ROLE_ID": "role-id",
    "VAULT_SECRET_ID": "secret-id",
}


@pytest.fixture
def vault_env(monkeypatch):
    for name, value in VAULT_ENV.items():
        monkeypatch.setenv(name, value)
    monkeypatch.delenv("VAULT_NAMESPACE", raising=False)


@pytest.fixture
def hvac_client(vault_env):
    with patch("clients.vault_client.hvac.Client") as client_cls:
        client = MagicMock()
        client.auth.approle.login.return_value = {"auth": {"client_token": "vault-token"}}
        client.is_authenticated.return_value = True
        client_cls.return_value = client
        yield client_cls, client


@pytest.fixture
def clean_singleton():
    vault_module._vault_client_instance = None
    vault_module._secret_cache.clear()
    yield
    vault_module._vault_client_instance = None
    vault_module._secret_cache.clear()


def _secret(data: dict) -> dict:
    return {"data": {"data": data}}


class TestVaultClientInit:
    """Initialization and authentication."""

    def test_missing_vault_addr_raises(self, monkeypatch):
        """VAULT_ADDR required."""
        monkeypatch.delenv("VAULT_ADDR", raising=False)
        with pytest.raises(ValueError, match="VAULT_ADDR"):
            VaultClient()

    def test_missing_approle_credentials_raises(self, vault_env, monkeypatch):
        """VAULT_ROLE_ID and VAULT_SECRET_ID required."""
        monkeypatch.delenv("VAULT_ROLE_ID")
        with pytest.raises(ValueError, match="VAULT_ROLE_ID"):
            VaultClient()

    def test_approle_login_sets_token(self, hvac_client):
        """Valid AppRole credentials authenticate."""
        client_cls, client = hvac_client

        VaultClient()

        client_cls.assert_called_once_with(url="https://vault.test.local")
        client.auth.approle.login.assert_called_once_with(role_id="role-id", secret_id="secret-id")
        assert client.token == "vault-token"

    def test_namespace_passed(self, hvac_client, monkeypatch):
        client_cls, _ = hvac_client
        monkeypatch.setenv("VAULT_NAMESPACE", "admin")

        VaultClient()

        client_cls.assert_called_once_with(url="https://vault.test.local", namespace="admin")

    def test_rejected_approle_raises_permission_error(self, hvac_client):
        """Invalid AppRole credentials fail authentication."""
        _, client = hvac_client
        client.auth.approle.login.side_effect = hvac.exceptions.InvalidRequest("invalid role")

        with pytest.raises(PermissionError, match="AppRole authentication failed"):
            VaultClient()

    def test_unauthenticated_after_login_raises(self, hvac_client):
        _, client = hvac_client
        client.is_authenticated.return_value = False

        with pytest.raises(PermissionError):
            VaultClient()


class TestGetSecret:
    """Secret retrieval - paths automatically scoped to billing/."""

    def test_returns_field_value(self, hvac_client):
        _, client = hvac_client
        client.secrets.kv.v2.read_secret_version.return_value = _secret({"url": "https://api"})

        assert VaultClient().get_secret("backend", "url") == "https://api"
        client.secrets.kv.v2.read_secret_version.assert_called_once_with(
            path="billing/backend", raise_on_deleted_version=True
        )

    def test_missing_field_raises_key_error(self, hvac_client):
        _, client = hvac_client
        client.secrets.kv.v2.read_secret_version.return_value = _secret({"host": "x"})

        with pytest.raises(KeyError, match="Available: host"):
            VaultClient().get_secret("backend", "url")

    def test_missing_path_raises_permission_error(self, hvac_client):
        _, client = hvac_client
        client.secrets.kv.v2.read_secret_version.side_effect = hvac.exceptions.InvalidPath()

        with pytest.raises(PermissionError, match="not found"):
            VaultClient().get_secret("nowhere", "url")

    def test_forbidden_raises_permission_error(self, hvac_client):
        _, client = hvac_client
        client.secrets.kv.v2.read_secret_version.side_effect = hvac.exceptions.Forbidden()

        with pytest.raises(PermissionError, match="Access denied"):
            VaultClient().get_secret("backend", "url")


class TestConvenienceFunctions:
    """Cached module-level accessors."""

    def test_backend_url_cached(self, hvac_client, clean_singleton):
        _, client = hvac_client
        client.secrets.kv.v2.read_secret_version.return_value = _secret({"url": "https://api"})

        assert get_backend_url() == "https://api"
        assert get_backend_url() == "https://api"
        assert client.secrets.kv.v2.read_secret_version.call_count == 1

    def test_valkey_url(self, hvac_client, clean_singleton):
        _, client = hvac_client
        client.secrets.kv.v2.read_secret_version.return_value = _secret({"url": "redis://cache:6379/0"})

        assert get_valkey_url() == "redis://cache:6379/0"
        client.secrets.kv.v2.read_secret_version.assert_called_with(
            path="billing/valkey", raise_on_deleted_version=True
        )
