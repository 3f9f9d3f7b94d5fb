"""HashiCorp Vault adapter – HashiCorpVaultProvider (KV v2)."""
from __future__ import annotations

import asyncio
from typing import Any

from secret_controller.adapters.vault.auth import VaultAuthenticator, _require_hvac
from secret_controller.kernel.errors import VaultError, VaultSecretNotFoundError
from secret_controller.vault import VaultProvider

DEFAULT_FIELD = "value"


class HashiCorpVaultProvider(VaultProvider):
    """Resolve vault names against a KV v2 mount.

    A name is ``path`` or ``path#field``; without a field the ``value``
    field of the secret is returned.  A version is the KV version number.
    """

    def __init__(
        self,
        authenticator: VaultAuthenticator,
        mount_point: str = "secret",
        default_field: str = DEFAULT_FIELD,
    ) -> None:
        self._authenticator = authenticator
        self._mount = mount_point
        self._default_field = default_field

    async def get_secret_value_for_version(self, name: str, version: str) -> str:
        return await asyncio.get_running_loop().run_in_executor(None, self._sync_get, name, version)

    def _parse_name(self, name: str) -> tuple[str, str]:
        path, _, field = name.partition("#")
        return path.strip("/"), field or self._default_field

    def _sync_get(self, name: str, version: str) -> str:
        path, field = self._parse_name(name)
        if not path:
            raise VaultError(f"invalid secret name {name!r}", name=name, version=version)
        kv_version: int | None = None
        if version:
            if not version.isdigit():
                raise VaultError(
                    f"invalid version {version!r} for secret {name!r}: must be a number",
                    name=name,
                    version=version,
                )
            kv_version = int(version)

        hvac = _require_hvac()
        client = self._authenticator.client()
        try:
            response: dict[str, Any] = client.secrets.kv.v2.read_secret_version(
                path=path,
                version=kv_version,
                mount_point=self._mount,
                raise_on_deleted_version=True,
            )
        except hvac.exceptions.InvalidPath as exc:
            raise VaultSecretNotFoundError(name, version, cause=exc) from exc
        except (hvac.exceptions.VaultError, OSError) as exc:
            raise VaultError(f"reading secret {name!r}: {exc}", name=name, version=version, cause=exc) from exc

        data = (response.get("data") or {}).get("data") or {}
        if field not in data:
            raise VaultSecretNotFoundError(name, version)
        return str(data[field])


__all__ = ["HashiCorpVaultProvider"]
