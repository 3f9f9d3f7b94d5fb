"""Resource model – VaultSecret specifications and the Secrets derived from them.

A ``VaultSecret`` custom resource looks like::

    apiVersion: secretcontroller.io/v1alpha1
    kind: VaultSecret
    metadata: {namespace: apps, name: db}
    spec:
      secretName: db-credentials
      items:
        - vaultName: apps/db#password
          outputKey: password
        - template: 'postgres://app:[[ secretValue "apps/db#password" ]]@db'
          outputKey: dsn
"""
from __future__ import annotations

import dataclasses
import re
from typing import Any, Mapping

from secret_controller.kernel.errors import ValidationError
from secret_controller.kernel.resources.keys import object_key

MANAGED_BY_LABEL = "app.kubernetes.io/managed-by"
MANAGED_BY_VALUE = "secret-controller"

# Secret data keys: consecutive alphanumerics, '-', '_' or '.'
_DATA_KEY_RE = re.compile(r"^[-._a-zA-Z0-9]+$")
_DATA_KEY_MAX_LENGTH = 253


def _text(data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    return str(value)


@dataclasses.dataclass(frozen=True)
class SecretEntry:
    """One item of a specification, resolved into one key of the derived Secret."""

    output_key: str = ""
    vault_name: str = ""
    vault_version: str = ""
    template: str = ""

    @property
    def is_template_entry(self) -> bool:
        return self.template != ""

    def validate(self) -> None:
        """Raise :class:`ValidationError` unless the entry is resolvable.

        ``output_key`` is required and exactly one of ``vault_name`` and
        ``template`` must be set.
        """
        errors: list[dict[str, Any]] = []
        if not self.output_key:
            errors.append({"field": "outputKey", "reason": "required"})
        elif len(self.output_key) > _DATA_KEY_MAX_LENGTH or not _DATA_KEY_RE.match(self.output_key):
            errors.append({"field": "outputKey", "reason": "must consist of alphanumerics, '-', '_' or '.'"})
        if not self.vault_name and not self.template:
            errors.append({"field": "vaultName", "reason": "one of vaultName and template must be set"})
        elif self.vault_name and self.template:
            errors.append({"field": "template", "reason": "vaultName and template are mutually exclusive"})
        if errors:
            raise ValidationError(
                "outputKey and exactly one of vaultName and template must be set",
                errors=errors,
                detail={"output_key": self.output_key},
            )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SecretEntry":
        return cls(
            output_key=_text(data, "outputKey"),
            vault_name=_text(data, "vaultName"),
            vault_version=_text(data, "vaultVersion"),
            template=_text(data, "template"),
        )


@dataclasses.dataclass(frozen=True)
class OwnerReference:
    """Back-reference from a derived Secret to the specification that owns it."""

    api_version: str
    kind: str
    name: str
    uid: str
    controller: bool = True
    block_owner_deletion: bool = True


@dataclasses.dataclass(frozen=True)
class SecretSpecification:
    """Declared desired state: which vault values end up in which Secret."""

    namespace: str
    name: str
    secret_name: str = ""
    items: tuple[SecretEntry, ...] = ()
    resource_version: str = ""
    uid: str = ""
    api_version: str = ""
    kind: str = ""

    @property
    def key(self) -> str:
        return object_key(self.namespace, self.name)

    @property
    def target_name(self) -> str:
        """Name of the derived Secret; falls back to the specification's own name."""
        return self.secret_name or self.name

    def owner_reference(self) -> OwnerReference:
        return OwnerReference(
            api_version=self.api_version,
            kind=self.kind,
            name=self.name,
            uid=self.uid,
        )

    @classmethod
    def from_dict(cls, obj: Mapping[str, Any]) -> "SecretSpecification":
        """Build a specification from the JSON object served by the Kubernetes API."""
        metadata = obj.get("metadata") or {}
        name = _text(metadata, "name")
        if not name:
            raise ValidationError("metadata.name is required")
        spec = obj.get("spec")
        if not isinstance(spec, Mapping):
            raise ValidationError(f"{name}: spec is required")
        raw_items = spec.get("items") or []
        if not isinstance(raw_items, list):
            raise ValidationError(f"{name}: spec.items must be a list")
        items: list[SecretEntry] = []
        for index, raw in enumerate(raw_items):
            if not isinstance(raw, Mapping):
                raise ValidationError(f"{name}: spec.items[{index}] must be an object")
            items.append(SecretEntry.from_dict(raw))
        return cls(
            namespace=_text(metadata, "namespace"),
            name=name,
            secret_name=_text(spec, "secretName"),
            items=tuple(items),
            resource_version=_text(metadata, "resourceVersion"),
            uid=_text(metadata, "uid"),
            api_version=_text(obj, "apiVersion"),
            kind=_text(obj, "kind"),
        )


@dataclasses.dataclass(frozen=True)
class DerivedSecret:
    """The Secret produced for a specification; ``data`` holds raw bytes."""

    namespace: str
    name: str
    data: dict[str, bytes] = dataclasses.field(default_factory=dict)
    owner_references: tuple[OwnerReference, ...] = ()
    labels: dict[str, str] = dataclasses.field(default_factory=dict)

    @property
    def key(self) -> str:
        return object_key(self.namespace, self.name)

    @classmethod
    def for_specification(cls, spec: SecretSpecification, data: dict[str, bytes]) -> "DerivedSecret":
        return cls(
            namespace=spec.namespace,
            name=spec.target_name,
            data=dict(data),
            owner_references=(spec.owner_reference(),),
            labels={MANAGED_BY_LABEL: MANAGED_BY_VALUE},
        )


__all__ = [
    "MANAGED_BY_LABEL",
    "MANAGED_BY_VALUE",
    "DerivedSecret",
    "OwnerReference",
    "SecretEntry",
    "SecretSpecification",
]
