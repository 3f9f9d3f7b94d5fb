"""Unit tests for RateLimitingQueue."""

from __future__ import annotations

import asyncio

from secret_controller.application.workqueue import RateLimitingQueue
from secret_controller.resilience.ratelimit import ExponentialBackoff, ItemExponentialFailureRateLimiter


def _queue(base_delay: float = 0.01) -> RateLimitingQueue:
    return RateLimitingQueue(ItemExponentialFailureRateLimiter(ExponentialBackoff(base_delay, 1.0)))


# ---------------------------------------------------------------------------
# Coalescing
# ---------------------------------------------------------------------------


class TestCoalescing:
    def test_duplicate_enqueue_is_noop(self) -> None:
        q = _queue()
        q.enqueue("apps/db")
        q.enqueue("apps/db")
        q.enqueue("apps/db")
        assert len(q) == 1

    def test_fifo_order(self) -> None:
        async def run() -> list[str | None]:
            q = _queue()
            for key in ("a", "b", "c"):
                q.enqueue(key)
            return [await q.dequeue() for _ in range(3)]

        assert asyncio.run(run()) == ["a", "b", "c"]

    def test_enqueue_while_processing_is_deferred(self) -> None:
        async def run() -> tuple[int, str | None, int]:
            q = _queue()
            q.enqueue("a")
            key = await q.dequeue()
            q.enqueue("a")
            q.enqueue("a")
            pending_while_processing = len(q)
            q.ack_success(key)
            again = await q.dequeue()
            return pending_while_processing, again, len(q)

        pending, again, remaining = asyncio.run(run())
        assert pending == 0
        assert again == "a"
        assert remaining == 0

    def test_done_without_new_enqueue_does_not_requeue(self) -> None:
        async def run() -> int:
            q = _queue()
            q.enqueue("a")
            q.done(await q.dequeue())
            return len(q)

        assert asyncio.run(run()) == 0

    def test_contains_reports_pending(self) -> None:
        q = _queue()
        q.enqueue("a")
        assert "a" in q
        assert "b" not in q


# ---------------------------------------------------------------------------
# Blocking dequeue and delayed adds
# ---------------------------------------------------------------------------


class TestDequeue:
    def test_dequeue_waits_for_enqueue(self) -> None:
        async def run() -> str | None:
            q = _queue()
            asyncio.get_running_loop().call_later(0.01, q.enqueue, "late")
            return await asyncio.wait_for(q.dequeue(), timeout=1.0)

        assert asyncio.run(run()) == "late"

    def test_enqueue_after_delays_item(self) -> None:
        async def run() -> tuple[int, str | None]:
            q = _queue()
            q.enqueue_after("a", 0.02)
            immediately = len(q)
            key = await asyncio.wait_for(q.dequeue(), timeout=1.0)
            return immediately, key

        assert asyncio.run(run()) == (0, "a")

    def test_enqueue_after_keeps_earliest_due_time(self) -> None:
        async def run() -> int:
            q = _queue()
            q.enqueue_after("a", 5.0)
            q.enqueue_after("a", 0.01)
            await asyncio.sleep(0.05)
            return len(q)

        assert asyncio.run(run()) == 1

    def test_enqueue_after_zero_is_immediate(self) -> None:
        async def run() -> int:
            q = _queue()
            q.enqueue_after("a", 0)
            return len(q)

        assert asyncio.run(run()) == 1

    def test_immediate_enqueue_cancels_delayed_add(self) -> None:
        async def run() -> int:
            q = _queue()
            q.enqueue_after("a", 0.02)
            q.enqueue("a")
            key = await asyncio.wait_for(q.dequeue(), timeout=1.0)
            q.ack_success(key)
            await asyncio.sleep(0.05)
            return len(q)

        assert asyncio.run(run()) == 0

    def test_enqueue_after_zero_cancels_delayed_add(self) -> None:
        async def run() -> int:
            q = _queue()
            q.enqueue_after("a", 0.02)
            q.enqueue_after("a", 0)
            key = await asyncio.wait_for(q.dequeue(), timeout=1.0)
            q.ack_success(key)
            await asyncio.sleep(0.05)
            return len(q)

        assert asyncio.run(run()) == 0


# ---------------------------------------------------------------------------
# Acknowledgements
# ---------------------------------------------------------------------------


class TestAcknowledgements:
    def test_ack_failure_requeues_with_backoff(self) -> None:
        async def run() -> tuple[int, int, str | None]:
            q = _queue(base_delay=0.01)
            q.enqueue("a")
            key = await q.dequeue()
            q.ack_failure(key)
            queued_now = len(q)
            again = await asyncio.wait_for(q.dequeue(), timeout=1.0)
            return queued_now, q.num_requeues("a"), again

        assert asyncio.run(run()) == (0, 1, "a")

    def test_ack_success_forgets_failures(self) -> None:
        async def run() -> int:
            q = _queue(base_delay=0.001)
            q.enqueue("a")
            q.ack_failure(await q.dequeue())
            q.ack_success(await asyncio.wait_for(q.dequeue(), timeout=1.0))
            return q.num_requeues("a")

        assert asyncio.run(run()) == 0


# ---------------------------------------------------------------------------
# Shutdown
# ---------------------------------------------------------------------------


class TestShutdown:
    def test_shutdown_wakes_blocked_dequeue(self) -> None:
        async def run() -> list[str | None]:
            q = _queue()
            waiters = [asyncio.create_task(q.dequeue()) for _ in range(3)]
            await asyncio.sleep(0)
            q.shutdown()
            return await asyncio.wait_for(asyncio.gather(*waiters), timeout=1.0)

        assert asyncio.run(run()) == [None, None, None]

    def test_shutdown_rejects_new_items(self) -> None:
        q = _queue()
        q.shutdown()
        q.enqueue("a")
        assert len(q) == 0
        assert q.shutting_down

    def test_shutdown_cancels_delayed_adds(self) -> None:
        async def run() -> int:
            q = _queue()
            q.enqueue_after("a", 0.01)
            q.shutdown()
            await asyncio.sleep(0.03)
            return len(q)

        assert asyncio.run(run()) == 0

    def test_in_flight_item_can_still_be_acknowledged(self) -> None:
        async def run() -> tuple[frozenset[str], frozenset[str]]:
            q = _queue()
            q.enqueue("a")
            key = await q.dequeue()
            q.shutdown()
            during = q.processing
            q.ack_failure(key)
            return during, q.processing

        during, after = asyncio.run(run())
        assert during == frozenset({"a"})
        assert after == frozenset()

    def test_cancelled_dequeue_does_not_lose_wakeup(self) -> None:
        async def run() -> str | None:
            q = _queue()
            first = asyncio.create_task(q.dequeue())
            second = asyncio.create_task(q.dequeue())
            await asyncio.sleep(0)
            first.cancel()
            q.enqueue("a")
            await asyncio.sleep(0)
            return await asyncio.wait_for(second, timeout=1.0)

        assert asyncio.run(run()) == "a"
