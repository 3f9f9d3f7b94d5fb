"""Watch events – tagged variants handed from the watch adapter to the controller."""
from __future__ import annotations

import dataclasses
from typing import TypeAlias

from secret_controller.kernel.resources.models import SecretSpecification


@dataclasses.dataclass(frozen=True)
class SpecificationAdded:
    spec: SecretSpecification


@dataclasses.dataclass(frozen=True)
class SpecificationUpdated:
    old: SecretSpecification
    new: SecretSpecification

    @property
    def version_changed(self) -> bool:
        return self.old.resource_version != self.new.resource_version


@dataclasses.dataclass(frozen=True)
class SpecificationDeleted:
    """``spec`` is the last state the watch observed before deletion."""

    spec: SecretSpecification


WatchEvent: TypeAlias = SpecificationAdded | SpecificationUpdated | SpecificationDeleted

__all__ = ["SpecificationAdded", "SpecificationDeleted", "SpecificationUpdated", "WatchEvent"]
