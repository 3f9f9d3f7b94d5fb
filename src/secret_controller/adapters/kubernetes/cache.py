"""Kubernetes adapter – SpecificationCache."""
from __future__ import annotations

from typing import Iterable

from secret_controller.application.ports import SpecificationLister
from secret_controller.kernel.resources import (
    SecretSpecification,
    SpecificationAdded,
    SpecificationDeleted,
    SpecificationUpdated,
    WatchEvent,
    object_key,
)


class SpecificationCache(SpecificationLister):
    """Last observed state of every specification, keyed by identity.

    Only the event loop thread mutates the cache.
    """

    def __init__(self) -> None:
        self._items: dict[str, SecretSpecification] = {}

    def get(self, namespace: str, name: str) -> SecretSpecification | None:
        return self._items.get(object_key(namespace, name))

    def upsert(self, spec: SecretSpecification) -> WatchEvent:
        old = self._items.get(spec.key)
        self._items[spec.key] = spec
        if old is None:
            return SpecificationAdded(spec)
        return SpecificationUpdated(old, spec)

    def delete(self, spec: SecretSpecification) -> WatchEvent:
        last = self._items.pop(spec.key, None)
        return SpecificationDeleted(last or spec)

    def evict(self, key: str) -> WatchEvent | None:
        """Drop *key* without a parsed object; ``None`` when it was not cached."""
        last = self._items.pop(key, None)
        if last is None:
            return None
        return SpecificationDeleted(last)

    def replace(self, specs: Iterable[SecretSpecification]) -> list[WatchEvent]:
        """Swap in a full listing; return the events that explain the difference."""
        fresh = {spec.key: spec for spec in specs}
        events: list[WatchEvent] = []
        for key, spec in fresh.items():
            old = self._items.get(key)
            events.append(SpecificationAdded(spec) if old is None else SpecificationUpdated(old, spec))
        for key, old in self._items.items():
            if key not in fresh:
                events.append(SpecificationDeleted(old))
        self._items = fresh
        return events

    def keys(self) -> list[str]:
        return sorted(self._items)

    def __len__(self) -> int:
        return len(self._items)


__all__ = ["SpecificationCache"]
