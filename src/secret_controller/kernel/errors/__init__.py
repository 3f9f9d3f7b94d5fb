"""Kernel error hierarchy – public re-export surface.

Hierarchy::

    BaseError
    ├── DomainError              (domain.py)
    │   ├── ValidationError
    │   ├── NotFoundError
    │   └── TemplateSyntaxError
    ├── ApplicationError         (application.py)
    │   └── CacheSyncError
    └── InfrastructureError      (infrastructure.py)
        ├── VaultError
        │   ├── VaultSecretNotFoundError
        │   └── VaultAuthenticationError
        └── TransportError
"""

from secret_controller.kernel.errors.application import ApplicationError, CacheSyncError
from secret_controller.kernel.errors.base import BaseError, error_text
from secret_controller.kernel.errors.domain import (
    DomainError,
    NotFoundError,
    TemplateSyntaxError,
    ValidationError,
)
from secret_controller.kernel.errors.infrastructure import (
    InfrastructureError,
    TransportError,
    VaultAuthenticationError,
    VaultError,
    VaultSecretNotFoundError,
)

__all__ = [
    "ApplicationError",
    "BaseError",
    "CacheSyncError",
    "DomainError",
    "InfrastructureError",
    "NotFoundError",
    "TemplateSyntaxError",
    "TransportError",
    "ValidationError",
    "VaultAuthenticationError",
    "VaultError",
    "VaultSecretNotFoundError",
    "error_text",
]
