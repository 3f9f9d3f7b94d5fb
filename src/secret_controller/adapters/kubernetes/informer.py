"""Kubernetes adapter – SpecificationInformer.

Lists the custom resource, then watches it from the listed resource
version.  The watch runs on a daemon thread; every change is handed to the
event loop with ``call_soon_threadsafe`` and applied to the cache there,
after which the registered handlers see it as a tagged event.
"""
from __future__ import annotations

import asyncio
import threading
from typing import Any, Callable

from kubernetes import watch
from kubernetes.client.exceptions import ApiException

from secret_controller.adapters.kubernetes.cache import SpecificationCache
from secret_controller.application.ports import SpecificationSource, WatchHandler
from secret_controller.kernel.errors import ValidationError, error_text
from secret_controller.kernel.resources import SecretSpecification, WatchEvent, object_key
from secret_controller.observability.logging import get_logger
from secret_controller.resilience.ratelimit import ExponentialBackoff

logger = get_logger(__name__)

HTTP_GONE = 410


class SpecificationInformer(SpecificationSource):
    """List+watch source for ``VaultSecret`` objects.

    An empty *namespace* watches the whole cluster.
    """

    def __init__(
        self,
        api: Any,
        *,
        group: str,
        version: str,
        plural: str,
        namespace: str = "",
        timeout_seconds: int = 300,
        cache: SpecificationCache | None = None,
        retry_backoff: ExponentialBackoff | None = None,
    ) -> None:
        self._api = api
        self._group = group
        self._version = version
        self._plural = plural
        self._namespace = namespace
        self._timeout = timeout_seconds
        self.cache = cache or SpecificationCache()
        self._retry_backoff = retry_backoff or ExponentialBackoff(base_delay=0.5, max_delay=30.0)
        self._handlers: list[WatchHandler] = []
        self._loop: asyncio.AbstractEventLoop | None = None
        self._thread: threading.Thread | None = None
        self._stopping = threading.Event()
        self._synced = asyncio.Event()
        self._watch: watch.Watch | None = None

    # ------------------------------------------------------------------
    # SpecificationSource
    # ------------------------------------------------------------------

    def get(self, namespace: str, name: str) -> SecretSpecification | None:
        return self.cache.get(namespace, name)

    def add_handler(self, handler: WatchHandler) -> None:
        self._handlers.append(handler)

    def start(self) -> None:
        if self._thread is not None:
            return
        self._loop = asyncio.get_running_loop()
        self._thread = threading.Thread(target=self._run, name=f"informer-{self._plural}", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stopping.set()
        if self._watch is not None:
            self._watch.stop()

    async def wait_for_sync(self) -> None:
        await self._synced.wait()

    @property
    def has_synced(self) -> bool:
        return self._synced.is_set()

    # ------------------------------------------------------------------
    # Loop side
    # ------------------------------------------------------------------

    def _emit(self, event: WatchEvent) -> None:
        for handler in self._handlers:
            handler(event)

    def _apply_list(self, specs: list[SecretSpecification]) -> None:
        for event in self.cache.replace(specs):
            self._emit(event)
        self._synced.set()

    def _apply_change(self, event_type: str, spec: SecretSpecification) -> None:
        if event_type == "DELETED":
            self._emit(self.cache.delete(spec))
        else:
            self._emit(self.cache.upsert(spec))

    def _apply_eviction(self, key: str) -> None:
        event = self.cache.evict(key)
        if event is not None:
            self._emit(event)

    def _dispatch(self, fn: Callable[..., None], *args: Any) -> None:
        if self._loop is None:
            return
        try:
            self._loop.call_soon_threadsafe(fn, *args)
        except RuntimeError:
            # event loop already closed
            self._stopping.set()

    # ------------------------------------------------------------------
    # Thread side
    # ------------------------------------------------------------------

    def _list_fn(self) -> Callable[..., Any]:
        if self._namespace:
            return self._api.list_namespaced_custom_object
        return self._api.list_cluster_custom_object

    def _list_args(self) -> tuple[str, ...]:
        if self._namespace:
            return (self._group, self._version, self._namespace, self._plural)
        return (self._group, self._version, self._plural)

    def _parse(self, obj: Any) -> SecretSpecification | None:
        try:
            return SecretSpecification.from_dict(obj)
        except ValidationError as exc:
            metadata = (obj.get("metadata") or {}) if isinstance(obj, dict) else {}
            logger.warning(
                "watch.invalid_object",
                namespace=metadata.get("namespace"),
                name=metadata.get("name"),
                error=error_text(exc),
            )
            return None

    def list_once(self) -> str:
        """List every object, replace the cache and return the list resource version."""
        response = self._list_fn()(*self._list_args())
        specs = [spec for spec in map(self._parse, response.get("items") or []) if spec is not None]
        self._dispatch(self._apply_list, specs)
        logger.info("watch.listed", plural=self._plural, count=len(specs))
        return str((response.get("metadata") or {}).get("resourceVersion") or "")

    def watch_once(self, resource_version: str) -> str:
        """Stream changes until the server closes the watch; return the last version seen.

        An empty return value asks the caller to list again.
        """
        self._watch = watch.Watch()
        try:
            for event in self._watch.stream(
                self._list_fn(),
                *self._list_args(),
                resource_version=resource_version,
                timeout_seconds=self._timeout,
            ):
                if self._stopping.is_set():
                    break
                event_type = event.get("type")
                obj = event.get("object") or {}
                if event_type == "ERROR":
                    if obj.get("code") == HTTP_GONE:
                        logger.info("watch.expired", resource_version=resource_version)
                        return ""
                    raise ApiException(status=obj.get("code"), reason=obj.get("message"))
                if event_type == "BOOKMARK":
                    resource_version = (obj.get("metadata") or {}).get("resourceVersion") or resource_version
                    continue
                spec = self._parse(obj)
                if spec is None:
                    # an unreadable object must not leave its previous state authoritative
                    metadata = obj.get("metadata") or {}
                    resource_version = metadata.get("resourceVersion") or resource_version
                    if metadata.get("name"):
                        key = object_key(metadata.get("namespace") or "", metadata["name"])
                        self._dispatch(self._apply_eviction, key)
                    continue
                resource_version = spec.resource_version or resource_version
                self._dispatch(self._apply_change, event_type, spec)
        finally:
            self._watch.stop()
        return resource_version

    def _run(self) -> None:
        resource_version = ""
        failures = 0
        while not self._stopping.is_set():
            try:
                if not resource_version:
                    resource_version = self.list_once()
                resource_version = self.watch_once(resource_version)
                failures = 0
            except ApiException as exc:
                resource_version = ""
                if exc.status == HTTP_GONE:
                    logger.info("watch.expired")
                    continue
                failures += 1
                logger.warning("watch.failed", status=exc.status, reason=exc.reason, attempt=failures)
                self._stopping.wait(self._retry_backoff.compute(failures - 1))
            except Exception as exc:
                resource_version = ""
                failures += 1
                logger.warning("watch.failed", error=repr(exc), attempt=failures)
                self._stopping.wait(self._retry_backoff.compute(failures - 1))
        logger.info("watch.stopped", plural=self._plural)


__all__ = ["SpecificationInformer"]
