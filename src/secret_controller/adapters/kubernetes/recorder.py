"""Kubernetes adapter – KubernetesEventRecorder."""
from __future__ import annotations

import asyncio
import functools
from datetime import UTC, datetime
from typing import Any, Callable

from kubernetes import client
from kubernetes.client.exceptions import ApiException

from secret_controller.application.ports import EventRecorder
from secret_controller.kernel.errors import TransportError
from secret_controller.kernel.resources import SecretSpecification

DEFAULT_COMPONENT = "secret-controller"


class KubernetesEventRecorder(EventRecorder):
    """Create core/v1 Events that point at the specification."""

    def __init__(
        self,
        core_api: Any,
        component: str = DEFAULT_COMPONENT,
        now_fn: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        self._api = core_api
        self._component = component
        self._now = now_fn

    def build_event(self, spec: SecretSpecification, event_type: str, reason: str, message: str) -> client.CoreV1Event:
        now = self._now()
        namespace = spec.namespace or "default"
        return client.CoreV1Event(
            metadata=client.V1ObjectMeta(generate_name=f"{spec.name}.", namespace=namespace),
            involved_object=client.V1ObjectReference(
                api_version=spec.api_version,
                kind=spec.kind,
                name=spec.name,
                namespace=spec.namespace or None,
                uid=spec.uid or None,
                resource_version=spec.resource_version or None,
            ),
            type=event_type,
            reason=reason,
            message=message,
            source=client.V1EventSource(component=self._component),
            reporting_component=self._component,
            first_timestamp=now,
            last_timestamp=now,
            count=1,
        )

    async def record(self, spec: SecretSpecification, event_type: str, reason: str, message: str) -> None:
        event = self.build_event(spec, event_type, reason, message)
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(
                None, functools.partial(self._api.create_namespaced_event, event.metadata.namespace, event)
            )
        except ApiException as exc:
            raise TransportError(
                f"recording event {reason} on {spec.key}: {exc.status} {exc.reason}",
                status_code=exc.status,
                cause=exc,
            ) from exc


__all__ = ["DEFAULT_COMPONENT", "KubernetesEventRecorder"]
