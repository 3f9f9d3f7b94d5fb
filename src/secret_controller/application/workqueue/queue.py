"""Application workqueue – RateLimitingQueue.

Coalescing work queue of identity strings for asyncio workers.

* An identity is queued at most once.  Enqueueing one that is already
  pending is a no-op.
* An identity handed to a worker is *processing*.  Enqueueing it again only
  marks it dirty; it re-enters the queue when the worker calls
  :meth:`RateLimitingQueue.done`, so two workers never reconcile the same
  identity at the same time.
* Failed items come back after the delay chosen by the rate limiter.

All methods must be called from the event loop thread.
"""
from __future__ import annotations

import asyncio
import collections

from secret_controller.observability.logging import get_logger
from secret_controller.resilience.ratelimit import RateLimiter, default_controller_rate_limiter

logger = get_logger(__name__)


class RateLimitingQueue:
    """FIFO of identities with coalescing, delayed adds and rate-limited retries.

    Usage::

        queue = RateLimitingQueue()
        queue.enqueue("apps/db")
        key = await queue.dequeue()
        try:
            await reconcile(key)
        except Exception:
            queue.ack_failure(key)
        else:
            queue.ack_success(key)
    """

    def __init__(self, rate_limiter: RateLimiter | None = None, name: str = "") -> None:
        self._rate_limiter = rate_limiter or default_controller_rate_limiter()
        self._name = name
        self._queue: collections.deque[str] = collections.deque()
        self._dirty: set[str] = set()
        self._processing: set[str] = set()
        self._waiters: collections.deque[asyncio.Future[None]] = collections.deque()
        self._waiting: dict[str, tuple[float, asyncio.TimerHandle]] = {}
        self._shutting_down = False

    # ------------------------------------------------------------------
    # Adding
    # ------------------------------------------------------------------

    def enqueue(self, item: str) -> None:
        """Queue *item* unless it is already pending; never blocks.

        A delayed add still waiting for *item* is cancelled.
        """
        if self._shutting_down:
            return
        self._cancel_waiting(item)
        if item in self._dirty:
            return
        self._dirty.add(item)
        if item in self._processing:
            return
        self._queue.append(item)
        self._wake_one()

    def enqueue_after(self, item: str, delay: float) -> None:
        """Queue *item* once *delay* seconds have elapsed.

        When *item* is already waiting, the earlier of the two due times wins.
        """
        if self._shutting_down:
            return
        if delay <= 0:
            self.enqueue(item)
            return
        loop = asyncio.get_running_loop()
        due = loop.time() + delay
        current = self._waiting.get(item)
        if current is not None:
            if current[0] <= due:
                return
            current[1].cancel()
        handle = loop.call_at(due, self._fire, item)
        self._waiting[item] = (due, handle)

    def _cancel_waiting(self, item: str) -> None:
        current = self._waiting.pop(item, None)
        if current is not None:
            current[1].cancel()

    def _fire(self, item: str) -> None:
        self._waiting.pop(item, None)
        self.enqueue(item)

    def _wake_one(self) -> None:
        while self._waiters:
            waiter = self._waiters.popleft()
            if not waiter.done():
                waiter.set_result(None)
                return

    # ------------------------------------------------------------------
    # Consuming
    # ------------------------------------------------------------------

    async def dequeue(self) -> str | None:
        """Wait for the next identity; return ``None`` once shut down."""
        while True:
            if self._shutting_down:
                return None
            if self._queue:
                break
            waiter = asyncio.get_running_loop().create_future()
            self._waiters.append(waiter)
            try:
                await waiter
            except asyncio.CancelledError:
                # pass the wake-up on if this waiter was already chosen
                if waiter.done() and not waiter.cancelled():
                    self._wake_one()
                raise
        item = self._queue.popleft()
        self._processing.add(item)
        self._dirty.discard(item)
        return item

    def done(self, item: str) -> None:
        """Mark *item* finished; requeue it if it was enqueued meanwhile."""
        self._processing.discard(item)
        if item in self._dirty and not self._shutting_down:
            self._queue.append(item)
            self._wake_one()

    def ack_success(self, item: str) -> None:
        self._rate_limiter.forget(item)
        self.done(item)

    def ack_failure(self, item: str) -> None:
        delay = self._rate_limiter.when(item)
        logger.debug(
            "queue.requeued",
            queue=self._name,
            key=item,
            delay=delay,
            requeues=self._rate_limiter.num_requeues(item),
        )
        self.enqueue_after(item, delay)
        self.done(item)

    def num_requeues(self, item: str) -> int:
        return self._rate_limiter.num_requeues(item)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def shutdown(self) -> None:
        """Stop admitting items and release every blocked :meth:`dequeue`."""
        self._shutting_down = True
        for _, handle in self._waiting.values():
            handle.cancel()
        self._waiting.clear()
        while self._waiters:
            waiter = self._waiters.popleft()
            if not waiter.done():
                waiter.set_result(None)

    @property
    def shutting_down(self) -> bool:
        return self._shutting_down

    @property
    def processing(self) -> frozenset[str]:
        return frozenset(self._processing)

    def __len__(self) -> int:
        return len(self._queue)

    def __contains__(self, item: object) -> bool:
        return item in self._dirty


__all__ = ["RateLimitingQueue"]
