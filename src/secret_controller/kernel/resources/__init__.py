"""Kernel resources – specification model, derived Secrets, keys and watch events."""
from secret_controller.kernel.resources.events import (
    SpecificationAdded,
    SpecificationDeleted,
    SpecificationUpdated,
    WatchEvent,
)
from secret_controller.kernel.resources.keys import object_key, split_key
from secret_controller.kernel.resources.models import (
    MANAGED_BY_LABEL,
    MANAGED_BY_VALUE,
    DerivedSecret,
    OwnerReference,
    SecretEntry,
    SecretSpecification,
)

__all__ = [
    "MANAGED_BY_LABEL",
    "MANAGED_BY_VALUE",
    "DerivedSecret",
    "OwnerReference",
    "SecretEntry",
    "SecretSpecification",
    "SpecificationAdded",
    "SpecificationDeleted",
    "SpecificationUpdated",
    "WatchEvent",
    "object_key",
    "split_key",
]
