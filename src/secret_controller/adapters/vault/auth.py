"""HashiCorp Vault adapter – VaultAuthenticator.

Credential sources, first match wins:

1. an explicit token;
2. an AppRole ``role_id`` / ``secret_id`` pair;
3. a node-level JSON credentials file holding either ``{"token": ...}`` or
   ``{"roleId": ..., "secretId": ...}``.
"""
from __future__ import annotations

import asyncio
import dataclasses
import json
import threading
from pathlib import Path
from typing import Any

from secret_controller.kernel.errors import VaultAuthenticationError
from secret_controller.observability.logging import get_logger

logger = get_logger(__name__)

DEFAULT_CREDENTIALS_FILE = "/etc/vault/credentials.json"


def _require_hvac() -> Any:
    try:
        import hvac  # type: ignore[import-untyped]
        return hvac
    except ImportError as exc:
        raise ImportError("Install 'hvac' to use the Vault adapter") from exc


@dataclasses.dataclass(frozen=True)
class VaultCredentials:
    token: str = ""
    role_id: str = ""
    secret_id: str = ""
    source: str = ""

    @property
    def is_approle(self) -> bool:
        return not self.token and bool(self.role_id and self.secret_id)


class VaultAuthenticator:
    """Build one authenticated ``hvac.Client`` on first use and keep it.

    :meth:`client` is safe to call from several executor threads at once;
    only the first caller logs in.
    """

    def __init__(
        self,
        url: str = "http://127.0.0.1:8200",
        *,
        token: str = "",
        role_id: str = "",
        secret_id: str = "",
        credentials_file: str = DEFAULT_CREDENTIALS_FILE,
        **client_kwargs: Any,
    ) -> None:
        self._url = url
        self._token = token
        self._role_id = role_id
        self._secret_id = secret_id
        self._credentials_file = credentials_file
        self._client_kwargs = client_kwargs
        self._client: Any = None
        self._lock = threading.Lock()

    def credentials(self) -> VaultCredentials:
        if self._token:
            return VaultCredentials(token=self._token, source="token")
        if self._role_id and self._secret_id:
            return VaultCredentials(role_id=self._role_id, secret_id=self._secret_id, source="approle")
        return self._credentials_from_file()

    def _credentials_from_file(self) -> VaultCredentials:
        path = Path(self._credentials_file) if self._credentials_file else None
        if path is None or not path.is_file():
            raise VaultAuthenticationError(
                "no vault credentials: set a token or an AppRole role_id/secret_id, "
                f"or provide {self._credentials_file or 'a credentials file'}"
            )
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise VaultAuthenticationError(f"reading credentials file {path}: {exc}", cause=exc) from exc
        if not isinstance(raw, dict):
            raise VaultAuthenticationError(f"credentials file {path} must hold a JSON object")
        source = str(path)
        if raw.get("token"):
            return VaultCredentials(token=str(raw["token"]), source=source)
        if raw.get("roleId") and raw.get("secretId"):
            return VaultCredentials(role_id=str(raw["roleId"]), secret_id=str(raw["secretId"]), source=source)
        raise VaultAuthenticationError(f"credentials file {path} has neither token nor roleId/secretId")

    def client(self) -> Any:
        """Return the shared authenticated client, logging in if needed."""
        with self._lock:
            if self._client is None:
                self._client = self._login()
            return self._client

    async def authenticate(self) -> Any:
        return await asyncio.get_running_loop().run_in_executor(None, self.client)

    def _login(self) -> Any:
        hvac = _require_hvac()
        creds = self.credentials()
        try:
            client = hvac.Client(url=self._url, token=creds.token or None, **self._client_kwargs)
            if creds.is_approle:
                client.auth.approle.login(role_id=creds.role_id, secret_id=creds.secret_id)
            authenticated = client.is_authenticated()
        except (hvac.exceptions.VaultError, OSError) as exc:
            raise VaultAuthenticationError(
                f"vault login with {creds.source} credentials failed: {exc}", cause=exc
            ) from exc
        if not authenticated:
            raise VaultAuthenticationError(f"vault rejected the {creds.source} credentials")
        logger.info("vault.authenticated", url=self._url, source=creds.source)
        return client


__all__ = ["DEFAULT_CREDENTIALS_FILE", "VaultAuthenticator", "VaultCredentials"]
