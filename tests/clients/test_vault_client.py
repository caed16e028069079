"""Tests for the Vault client and cached secret helpers, with hvac mocked."""

from unittest.mock import MagicMock, patch

import pytest
from hvac.exceptions import Forbidden, InvalidPath

import clients.vault_client as vault_module
from clients.vault_client import (
    VaultClient,
    VaultError,
    get_database_url,
    get_email_config,
)


@pytest.fixture(autouse=True)
def vault_env(monkeypatch):
    monkeypatch.setenv("VAULT_ADDR", "https://vault.test.local")
    monkeypatch.setenv("VAULT_ROLE_ID", "role")
    monkeypatch.setenv("VAULT_SECRET_ID", "secret")
    monkeypatch.delenv("VAULT_NAMESPACE", raising=False)
    vault_module._vault_client_instance = None
    vault_module._secret_cache.clear()
    yield
    vault_module._vault_client_instance = None
    vault_module._secret_cache.clear()


@pytest.fixture
def hvac_client():
    client = MagicMock()
    client.auth.approle.login.return_value = {"auth": {"client_token": "tok"}}
    client.is_authenticated.return_value = True
    return client


@pytest.fixture
def vault(hvac_client):
    with patch("clients.vault_client.hvac.Client", return_value=hvac_client):
        yield VaultClient()


def _secret(data):
    return {"data": {"data": data}}


class TestInit:
    def test_missing_addr_raises(self, monkeypatch):
        monkeypatch.delenv("VAULT_ADDR")
        with pytest.raises(VaultError, match="VAULT_ADDR"):
            VaultClient()

    def test_missing_approle_raises(self, monkeypatch):
        monkeypatch.delenv("VAULT_SECRET_ID")
        with pytest.raises(VaultError, match="VAULT_ROLE_ID"):
            VaultClient()

    def test_rejected_approle_raises(self, hvac_client):
        hvac_client.auth.approle.login.side_effect = Forbidden("denied")
        with patch("clients.vault_client.hvac.Client", return_value=hvac_client):
            with pytest.raises(VaultError, match="AppRole"):
                VaultClient()

    def test_token_applied(self, vault, hvac_client):
        assert hvac_client.token == "tok"


class TestGetSecret:
    def test_scoped_to_prefix(self, vault, hvac_client):
        hvac_client.secrets.kv.v2.read_secret_version.return_value = _secret({"url": "postgres://x"})

        assert vault.get_secret("database", "url") == "postgres://x"
        kwargs = hvac_client.secrets.kv.v2.read_secret_version.call_args.kwargs
        assert kwargs["path"] == "cadence/database"

    def test_missing_path_raises_permission_error(self, vault, hvac_client):
        hvac_client.secrets.kv.v2.read_secret_version.side_effect = InvalidPath("nope")
        with pytest.raises(PermissionError, match="not found"):
            vault.get_secret("nowhere", "url")

    def test_missing_field_raises_key_error(self, vault, hvac_client):
        hvac_client.secrets.kv.v2.read_secret_version.return_value = _secret({"url": "x"})
        with pytest.raises(KeyError, match="password"):
            vault.get_secret("database", "password")


class TestHelpers:
    def test_database_url_cached(self, hvac_client):
        hvac_client.secrets.kv.v2.read_secret_version.return_value = _secret({"url": "postgres://x"})
        with patch("clients.vault_client.hvac.Client", return_value=hvac_client):
            assert get_database_url() == "postgres://x"
            assert get_database_url() == "postgres://x"
        assert hvac_client.secrets.kv.v2.read_secret_version.call_count == 1

    def test_email_config_when_present(self, hvac_client):
        hvac_client.secrets.kv.v2.read_secret_version.return_value = _secret(
            {"gateway_url": "https://gw", "api_key": "k", "hmac_secret": "s"}
        )
        with patch("clients.vault_client.hvac.Client", return_value=hvac_client):
            assert get_email_config() == {
                "gateway_url": "https://gw", "api_key": "k", "hmac_secret": "s",
            }

    def test_email_config_absent_is_none(self, hvac_client):
        hvac_client.secrets.kv.v2.read_secret_version.side_effect = InvalidPath("nope")
        with patch("clients.vault_client.hvac.Client", return_value=hvac_client):
            assert get_email_config() is None
