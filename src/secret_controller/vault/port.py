"""Vault – VaultProvider port."""
from __future__ import annotations

import abc


class VaultProvider(abc.ABC):
    """Port: resolve ``(name, version)`` to a secret value.

    An empty *version* means "latest".  Implementations raise
    :class:`~secret_controller.kernel.errors.VaultError` (or its subclass
    ``VaultSecretNotFoundError``) on failure and must be safe for concurrent
    use by several reconcile workers.
    """

    async def get_secret_value(self, name: str) -> str:
        return await self.get_secret_value_for_version(name, "")

    @abc.abstractmethod
    async def get_secret_value_for_version(self, name: str, version: str) -> str: ...


__all__ = ["VaultProvider"]
