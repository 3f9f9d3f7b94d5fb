"""Application – Controller (the dispatch loop).

Wires a :class:`SpecificationSource` to a :class:`RateLimitingQueue` and
runs *workers* asyncio tasks that each loop ``dequeue -> reconcile -> ack``.
"""
from __future__ import annotations

import asyncio

from secret_controller.application.ports import SpecificationSource
from secret_controller.application.reconciler import Reconciler
from secret_controller.application.workqueue import RateLimitingQueue
from secret_controller.kernel.errors import CacheSyncError, error_text
from secret_controller.kernel.resources import (
    SpecificationAdded,
    SpecificationDeleted,
    SpecificationUpdated,
    WatchEvent,
)
from secret_controller.observability.logging import get_logger

logger = get_logger(__name__)


class Controller:
    """Admit watch events into the queue and drive reconcile workers.

    Admission policy: additions and deletions are always queued; updates
    are queued only when the resource version changed, so periodic resyncs
    of unchanged objects cost nothing.
    """

    def __init__(
        self,
        source: SpecificationSource,
        reconciler: Reconciler,
        queue: RateLimitingQueue | None = None,
    ) -> None:
        self._source = source
        self._reconciler = reconciler
        self.queue = queue or RateLimitingQueue(name="vaultsecrets")

    def handle_event(self, event: WatchEvent) -> None:
        match event:
            case SpecificationAdded(spec=spec):
                self.queue.enqueue(spec.key)
            case SpecificationUpdated() if event.version_changed:
                self.queue.enqueue(event.new.key)
            case SpecificationUpdated():
                logger.debug("watch.update_skipped", key=event.new.key, version=event.new.resource_version)
            case SpecificationDeleted(spec=spec):
                self.queue.enqueue(spec.key)

    async def run(self, workers: int, stop: asyncio.Event) -> None:
        """Run until *stop* is set.

        Raises :class:`CacheSyncError` when *stop* is set before the cache
        finished its initial list.
        """
        self._source.add_handler(self.handle_event)
        logger.info("controller.starting", workers=workers)
        self._source.start()
        try:
            await self._wait_for_sync(stop)
            logger.info("controller.started", workers=workers)
            tasks = [
                asyncio.create_task(self._run_worker(), name=f"worker-{index}")
                for index in range(workers)
            ]
            await stop.wait()
            logger.info("controller.stopping")
            self.queue.shutdown()
            await asyncio.gather(*tasks)
        finally:
            self.queue.shutdown()
            self._source.stop()
        logger.info("controller.stopped")

    async def _wait_for_sync(self, stop: asyncio.Event) -> None:
        sync = asyncio.ensure_future(self._source.wait_for_sync())
        stopped = asyncio.ensure_future(stop.wait())
        try:
            await asyncio.wait({sync, stopped}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            stopped.cancel()
            if not sync.done():
                sync.cancel()
        if not sync.done() or sync.cancelled():
            raise CacheSyncError()
        # surface errors raised while listing
        sync.result()

    async def _run_worker(self) -> None:
        while await self.process_next_work_item():
            pass

    async def process_next_work_item(self) -> bool:
        """Reconcile one key; return ``False`` once the queue is shut down."""
        key = await self.queue.dequeue()
        if key is None:
            return False
        try:
            await self._reconciler.reconcile(key)
        except Exception as exc:
            self.queue.ack_failure(key)
            logger.error(
                "reconcile.failed",
                key=key,
                error=error_text(exc),
                error_type=type(exc).__name__,
                requeues=self.queue.num_requeues(key),
            )
        else:
            self.queue.ack_success(key)
            logger.debug("reconcile.succeeded", key=key)
        return True


__all__ = ["Controller"]
