"""Kubernetes adapter – KubernetesSecretWriter."""
from __future__ import annotations

import asyncio
import base64
import functools
from typing import Any, Callable

from kubernetes import client
from kubernetes.client.exceptions import ApiException

from secret_controller.application.ports import SecretWriter
from secret_controller.kernel.errors import NotFoundError, TransportError
from secret_controller.kernel.resources import DerivedSecret

HTTP_NOT_FOUND = 404
SECRET_TYPE_OPAQUE = "Opaque"


def to_v1_secret(secret: DerivedSecret) -> client.V1Secret:
    """Build the API object for *secret*; data values are base64 encoded."""
    return client.V1Secret(
        api_version="v1",
        kind="Secret",
        type=SECRET_TYPE_OPAQUE,
        metadata=client.V1ObjectMeta(
            name=secret.name,
            namespace=secret.namespace,
            labels=dict(secret.labels),
            owner_references=[
                client.V1OwnerReference(
                    api_version=ref.api_version,
                    kind=ref.kind,
                    name=ref.name,
                    uid=ref.uid,
                    controller=ref.controller,
                    block_owner_deletion=ref.block_owner_deletion,
                )
                for ref in secret.owner_references
            ],
        ),
        data={key: base64.b64encode(value).decode("ascii") for key, value in secret.data.items()},
    )


class KubernetesSecretWriter(SecretWriter):
    """Write derived Secrets through ``CoreV1Api`` in the default executor."""

    def __init__(self, core_api: Any) -> None:
        self._api = core_api

    async def update(self, secret: DerivedSecret) -> None:
        await self._call(secret, self._api.replace_namespaced_secret, secret.name, secret.namespace, to_v1_secret(secret))

    async def create(self, secret: DerivedSecret) -> None:
        await self._call(secret, self._api.create_namespaced_secret, secret.namespace, to_v1_secret(secret))

    async def _call(self, secret: DerivedSecret, fn: Callable[..., Any], *args: Any) -> Any:
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, functools.partial(fn, *args))
        except ApiException as exc:
            if exc.status == HTTP_NOT_FOUND:
                raise NotFoundError("secret", secret.key, cause=exc) from exc
            raise TransportError(
                f"writing secret {secret.key}: {exc.status} {exc.reason}",
                status_code=exc.status,
                cause=exc,
            ) from exc


__all__ = ["KubernetesSecretWriter", "to_v1_secret"]
