"""Infrastructure errors – vault lookups and cluster API transport."""

from __future__ import annotations

from typing import Any

from secret_controller.kernel.errors.base import BaseError


class InfrastructureError(BaseError):
    """Infrastructure / I/O failure that is not a specification problem."""

    default_code = "infrastructure_error"


class VaultError(InfrastructureError):
    """A vault lookup failed."""

    default_code = "vault_error"

    def __init__(
        self,
        message: str,
        *,
        name: str | None = None,
        version: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.name = name
        self.version = version


class VaultSecretNotFoundError(VaultError):
    """The vault has no value for the requested name / version."""

    default_code = "vault_secret_not_found"

    def __init__(self, name: str, version: str = "", **kwargs: Any) -> None:
        msg = f"secret '{name}' not found"
        if version:
            msg = f"secret '{name}' version '{version}' not found"
        super().__init__(msg, name=name, version=version, **kwargs)


class VaultAuthenticationError(VaultError):
    """No usable vault credentials, or the login was rejected."""

    default_code = "vault_authentication_error"


class TransportError(InfrastructureError):
    """A read or write against the Kubernetes API failed."""

    default_code = "transport_error"

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.status_code = status_code


__all__ = [
    "InfrastructureError",
    "TransportError",
    "VaultAuthenticationError",
    "VaultError",
    "VaultSecretNotFoundError",
]
