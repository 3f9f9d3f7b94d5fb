"""Application-layer errors – controller lifecycle concerns."""

from __future__ import annotations

from secret_controller.kernel.errors.base import BaseError


class ApplicationError(BaseError):
    """Cross-cutting application-layer concern."""

    default_code = "application_error"


class CacheSyncError(ApplicationError):
    """The controller was stopped before its informer caches synced."""

    default_code = "cache_sync_failed"

    def __init__(self, message: str = "failed to wait for caches to sync") -> None:
        super().__init__(message)


__all__ = ["ApplicationError", "CacheSyncError"]
