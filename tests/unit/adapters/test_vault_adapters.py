"""Unit tests for the HashiCorp Vault adapter (mocked hvac client)."""
from __future__ import annotations

import asyncio
import json
from pathlib import Path
from unittest.mock import MagicMock, patch

import hvac
import pytest

from secret_controller.adapters.vault import HashiCorpVaultProvider, VaultAuthenticator
from secret_controller.kernel.errors import VaultAuthenticationError, VaultError, VaultSecretNotFoundError

_REQUIRE = "secret_controller.adapters.vault.auth._require_hvac"
_REQUIRE_PROVIDER = "secret_controller.adapters.vault.provider._require_hvac"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _make_mock_hvac(kv_data: dict | None = None, authenticated: bool = True):
    """Return (mock_module, mock_client); exception classes are the real ones."""
    kv_data = kv_data if kv_data is not None else {"value": "s3cr3t"}
    mock_client = MagicMock()
    mock_client.is_authenticated.return_value = authenticated
    mock_client.secrets.kv.v2.read_secret_version.return_value = {"data": {"data": kv_data}}
    mock_hvac = MagicMock()
    mock_hvac.Client.return_value = mock_client
    mock_hvac.exceptions = hvac.exceptions
    return mock_hvac, mock_client


def _make_provider(kv_data: dict | None = None, mount: str = "secret"):
    mock_hvac, mock_client = _make_mock_hvac(kv_data)
    authenticator = VaultAuthenticator("http://vault:8200", token="tok")
    with patch(_REQUIRE, return_value=mock_hvac):
        authenticator.client()
    provider = HashiCorpVaultProvider(authenticator, mount_point=mount)
    return provider, mock_client, mock_hvac


def _get(provider: HashiCorpVaultProvider, name: str, version: str = "", mock_hvac=None) -> str:
    with patch(_REQUIRE_PROVIDER, return_value=mock_hvac or MagicMock(exceptions=hvac.exceptions)):
        return asyncio.run(provider.get_secret_value_for_version(name, version))


# ===========================================================================
# VaultAuthenticator
# ===========================================================================

class TestVaultAuthenticatorCredentials:
    def test_token_first(self, tmp_path: Path) -> None:
        auth = VaultAuthenticator(token="tok", role_id="r", secret_id="s", credentials_file=str(tmp_path / "x"))
        creds = auth.credentials()
        assert creds.token == "tok"
        assert creds.source == "token"

    def test_approle_second(self, tmp_path: Path) -> None:
        creds = VaultAuthenticator(role_id="r", secret_id="s", credentials_file=str(tmp_path / "x")).credentials()
        assert creds.is_approle
        assert (creds.role_id, creds.secret_id) == ("r", "s")

    def test_credentials_file_token(self, tmp_path: Path) -> None:
        path = tmp_path / "credentials.json"
        path.write_text(json.dumps({"token": "from-file"}))
        creds = VaultAuthenticator(credentials_file=str(path)).credentials()
        assert creds.token == "from-file"
        assert creds.source == str(path)

    def test_credentials_file_approle(self, tmp_path: Path) -> None:
        path = tmp_path / "credentials.json"
        path.write_text(json.dumps({"roleId": "r", "secretId": "s"}))
        assert VaultAuthenticator(credentials_file=str(path)).credentials().is_approle

    def test_no_credentials(self, tmp_path: Path) -> None:
        with pytest.raises(VaultAuthenticationError, match="no vault credentials"):
            VaultAuthenticator(credentials_file=str(tmp_path / "missing.json")).credentials()

    def test_malformed_credentials_file(self, tmp_path: Path) -> None:
        path = tmp_path / "credentials.json"
        path.write_text("{not json")
        with pytest.raises(VaultAuthenticationError, match="reading credentials file"):
            VaultAuthenticator(credentials_file=str(path)).credentials()

    def test_credentials_file_without_usable_fields(self, tmp_path: Path) -> None:
        path = tmp_path / "credentials.json"
        path.write_text(json.dumps({"roleId": "r"}))
        with pytest.raises(VaultAuthenticationError, match="neither token"):
            VaultAuthenticator(credentials_file=str(path)).credentials()


class TestVaultAuthenticatorLogin:
    def test_token_login(self) -> None:
        mock_hvac, mock_client = _make_mock_hvac()
        with patch(_REQUIRE, return_value=mock_hvac):
            client = VaultAuthenticator("http://vault:8200", token="tok").client()
        assert client is mock_client
        mock_hvac.Client.assert_called_once_with(url="http://vault:8200", token="tok")
        mock_client.auth.approle.login.assert_not_called()

    def test_approle_login(self, tmp_path: Path) -> None:
        mock_hvac, mock_client = _make_mock_hvac()
        auth = VaultAuthenticator(role_id="r", secret_id="s", credentials_file=str(tmp_path / "x"))
        with patch(_REQUIRE, return_value=mock_hvac):
            auth.client()
        mock_client.auth.approle.login.assert_called_once_with(role_id="r", secret_id="s")

    def test_client_is_built_once(self) -> None:
        mock_hvac, _ = _make_mock_hvac()
        auth = VaultAuthenticator(token="tok")
        with patch(_REQUIRE, return_value=mock_hvac):
            assert auth.client() is auth.client()
        assert mock_hvac.Client.call_count == 1

    def test_authenticate_runs_in_executor(self) -> None:
        mock_hvac, mock_client = _make_mock_hvac()
        with patch(_REQUIRE, return_value=mock_hvac):
            assert asyncio.run(VaultAuthenticator(token="tok").authenticate()) is mock_client

    def test_rejected_credentials(self) -> None:
        mock_hvac, _ = _make_mock_hvac(authenticated=False)
        with patch(_REQUIRE, return_value=mock_hvac):
            with pytest.raises(VaultAuthenticationError, match="rejected"):
                VaultAuthenticator(token="bad").client()

    def test_login_error_wrapped(self, tmp_path: Path) -> None:
        mock_hvac, mock_client = _make_mock_hvac()
        mock_client.auth.approle.login.side_effect = hvac.exceptions.InvalidRequest("invalid role")
        auth = VaultAuthenticator(role_id="r", secret_id="s", credentials_file=str(tmp_path / "x"))
        with patch(_REQUIRE, return_value=mock_hvac):
            with pytest.raises(VaultAuthenticationError, match="invalid role"):
                auth.client()

    def test_import_error_without_lib(self) -> None:
        with patch(_REQUIRE, side_effect=ImportError("Install 'hvac'")):
            with pytest.raises(ImportError, match="hvac"):
                VaultAuthenticator(token="tok").client()


# ===========================================================================
# HashiCorpVaultProvider
# ===========================================================================

class TestHashiCorpVaultProvider:
    def test_reads_default_value_field(self) -> None:
        provider, mock_client, mock_hvac = _make_provider({"value": "s3cr3t"})
        assert _get(provider, "apps/db", mock_hvac=mock_hvac) == "s3cr3t"
        mock_client.secrets.kv.v2.read_secret_version.assert_called_once_with(
            path="apps/db", version=None, mount_point="secret", raise_on_deleted_version=True
        )

    def test_reads_named_field(self) -> None:
        provider, _, mock_hvac = _make_provider({"user": "app", "password": "pw"})
        assert _get(provider, "apps/db#password", mock_hvac=mock_hvac) == "pw"

    def test_passes_numeric_version(self) -> None:
        provider, mock_client, mock_hvac = _make_provider()
        _get(provider, "apps/db", "3", mock_hvac=mock_hvac)
        assert mock_client.secrets.kv.v2.read_secret_version.call_args.kwargs["version"] == 3

    def test_custom_mount_point(self) -> None:
        provider, mock_client, mock_hvac = _make_provider(mount="kv")
        _get(provider, "apps/db", mock_hvac=mock_hvac)
        assert mock_client.secrets.kv.v2.read_secret_version.call_args.kwargs["mount_point"] == "kv"

    def test_latest_via_port_default(self) -> None:
        provider, mock_client, mock_hvac = _make_provider()
        with patch(_REQUIRE_PROVIDER, return_value=mock_hvac):
            assert asyncio.run(provider.get_secret_value("apps/db")) == "s3cr3t"

    def test_non_numeric_version_rejected(self) -> None:
        provider, mock_client, mock_hvac = _make_provider()
        with pytest.raises(VaultError, match="must be a number"):
            _get(provider, "apps/db", "latest", mock_hvac=mock_hvac)
        mock_client.secrets.kv.v2.read_secret_version.assert_not_called()

    def test_empty_name_rejected(self) -> None:
        provider, _, mock_hvac = _make_provider()
        with pytest.raises(VaultError, match="invalid secret name"):
            _get(provider, "#field", mock_hvac=mock_hvac)

    def test_invalid_path_is_not_found(self) -> None:
        provider, mock_client, mock_hvac = _make_provider()
        mock_client.secrets.kv.v2.read_secret_version.side_effect = hvac.exceptions.InvalidPath("no such path")
        with pytest.raises(VaultSecretNotFoundError) as info:
            _get(provider, "apps/gone", "2", mock_hvac=mock_hvac)
        assert info.value.message == "secret 'apps/gone' version '2' not found"

    def test_missing_field_is_not_found(self) -> None:
        provider, _, mock_hvac = _make_provider({"other": "x"})
        with pytest.raises(VaultSecretNotFoundError):
            _get(provider, "apps/db#password", mock_hvac=mock_hvac)

    def test_forbidden_is_vault_error(self) -> None:
        provider, mock_client, mock_hvac = _make_provider()
        mock_client.secrets.kv.v2.read_secret_version.side_effect = hvac.exceptions.Forbidden("permission denied")
        with pytest.raises(VaultError, match="permission denied") as info:
            _get(provider, "apps/db", mock_hvac=mock_hvac)
        assert not isinstance(info.value, VaultSecretNotFoundError)

    def test_connection_error_is_vault_error(self) -> None:
        provider, mock_client, mock_hvac = _make_provider()
        mock_client.secrets.kv.v2.read_secret_version.side_effect = ConnectionError("refused")
        with pytest.raises(VaultError, match="refused"):
            _get(provider, "apps/db", mock_hvac=mock_hvac)
