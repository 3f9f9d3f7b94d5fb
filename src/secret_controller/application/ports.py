"""Application ports – what the reconciler needs from the cluster."""
from __future__ import annotations

import abc
from typing import Awaitable, Callable

from secret_controller.kernel.resources import DerivedSecret, SecretSpecification, WatchEvent

EVENT_TYPE_NORMAL = "Normal"

WatchHandler = Callable[[WatchEvent], None]


class SpecificationLister(abc.ABC):
    """Port: read specifications from the local cache."""

    @abc.abstractmethod
    def get(self, namespace: str, name: str) -> SecretSpecification | None:
        """Return the cached specification or ``None`` when it is gone."""


class SpecificationSource(SpecificationLister):
    """Port: a lister that is kept current by a watch and reports changes."""

    @abc.abstractmethod
    def add_handler(self, handler: WatchHandler) -> None: ...

    @abc.abstractmethod
    def start(self) -> None: ...

    @abc.abstractmethod
    def stop(self) -> None: ...

    @abc.abstractmethod
    async def wait_for_sync(self) -> None:
        """Return once the initial list has been loaded into the cache."""


class SecretWriter(abc.ABC):
    """Port: write derived Secrets."""

    @abc.abstractmethod
    async def update(self, secret: DerivedSecret) -> None:
        """Replace an existing Secret; raise ``NotFoundError`` when absent."""

    @abc.abstractmethod
    async def create(self, secret: DerivedSecret) -> None: ...


class EventRecorder(abc.ABC):
    """Port: attach a human-readable event to a specification."""

    @abc.abstractmethod
    async def record(self, spec: SecretSpecification, event_type: str, reason: str, message: str) -> None: ...


__all__ = [
    "EVENT_TYPE_NORMAL",
    "EventRecorder",
    "SecretWriter",
    "SpecificationLister",
    "SpecificationSource",
    "WatchHandler",
]
