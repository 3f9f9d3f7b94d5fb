"""Queue keys – ``namespace/name`` identities for specifications."""
from __future__ import annotations

from secret_controller.kernel.errors import ValidationError


def object_key(namespace: str, name: str) -> str:
    """Return the work-item key of the object ``(namespace, name)``."""
    if namespace:
        return f"{namespace}/{name}"
    return name


def split_key(key: str) -> tuple[str, str]:
    """Split a key built by :func:`object_key` back into ``(namespace, name)``.

    Raises :class:`ValidationError` when *key* has more than one ``/`` or an
    empty name.
    """
    parts = key.split("/")
    if len(parts) == 1 and parts[0]:
        return "", parts[0]
    if len(parts) == 2 and parts[0] and parts[1]:
        return parts[0], parts[1]
    raise ValidationError(f"unexpected key format: {key!r}")


__all__ = ["object_key", "split_key"]
