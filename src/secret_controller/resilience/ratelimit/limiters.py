"""Resilience – per-item and overall rate limiters for queued work.

A limiter answers *how long should this item wait before it is retried*.
:class:`ItemExponentialFailureRateLimiter` backs off each identity
independently; :class:`BucketRateLimiter` bounds the overall retry rate;
:class:`MaxOfRateLimiter` combines them.
"""
from __future__ import annotations

import abc
import time
from typing import Callable

from secret_controller.resilience.ratelimit.backoff import BackoffStrategy, ExponentialBackoff


class RateLimiter(abc.ABC):
    """Port: delay policy for re-queued items."""

    @abc.abstractmethod
    def when(self, item: str) -> float:
        """Record one more failure of *item* and return its delay in seconds."""

    @abc.abstractmethod
    def forget(self, item: str) -> None:
        """Drop any state kept for *item* (it succeeded)."""

    @abc.abstractmethod
    def num_requeues(self, item: str) -> int: ...


class ItemExponentialFailureRateLimiter(RateLimiter):
    """The n-th consecutive failure of an item waits ``backoff.compute(n)``."""

    def __init__(self, backoff: BackoffStrategy | None = None) -> None:
        self._backoff = backoff or ExponentialBackoff()
        self._failures: dict[str, int] = {}

    def when(self, item: str) -> float:
        attempt = self._failures.get(item, 0)
        self._failures[item] = attempt + 1
        return self._backoff.compute(attempt)

    def forget(self, item: str) -> None:
        self._failures.pop(item, None)

    def num_requeues(self, item: str) -> int:
        return self._failures.get(item, 0)


class BucketRateLimiter(RateLimiter):
    """Token bucket shared by all items.

    *qps* tokens are added per second up to *burst*.  Each call reserves one
    token; when the bucket is empty the returned delay is the time until the
    reservation is covered.
    """

    def __init__(
        self,
        qps: float = 10.0,
        burst: int = 100,
        now_fn: Callable[[], float] = time.monotonic,
    ) -> None:
        self._qps = qps
        self._burst = float(burst)
        self._now = now_fn
        self._tokens = float(burst)
        self._last_refill = now_fn()

    def _refill(self) -> None:
        now = self._now()
        elapsed = now - self._last_refill
        self._tokens = min(self._burst, self._tokens + elapsed * self._qps)
        self._last_refill = now

    def when(self, item: str) -> float:  # noqa: ARG002
        self._refill()
        self._tokens -= 1.0
        if self._tokens >= 0:
            return 0.0
        return -self._tokens / self._qps

    def forget(self, item: str) -> None:  # noqa: ARG002
        return None

    def num_requeues(self, item: str) -> int:  # noqa: ARG002
        return 0


class MaxOfRateLimiter(RateLimiter):
    """Delay is the longest delay any child limiter asks for."""

    def __init__(self, *limiters: RateLimiter) -> None:
        if not limiters:
            raise ValueError("MaxOfRateLimiter needs at least one limiter")
        self._limiters = limiters

    def when(self, item: str) -> float:
        return max(limiter.when(item) for limiter in self._limiters)

    def forget(self, item: str) -> None:
        for limiter in self._limiters:
            limiter.forget(item)

    def num_requeues(self, item: str) -> int:
        return max(limiter.num_requeues(item) for limiter in self._limiters)


def default_controller_rate_limiter(
    base_delay: float = 0.005,
    max_delay: float = 1000.0,
    qps: float = 10.0,
    burst: int = 100,
) -> RateLimiter:
    """Per-item exponential backoff bounded by an overall token bucket."""
    return MaxOfRateLimiter(
        ItemExponentialFailureRateLimiter(ExponentialBackoff(base_delay, max_delay)),
        BucketRateLimiter(qps=qps, burst=burst),
    )


__all__ = [
    "BucketRateLimiter",
    "ItemExponentialFailureRateLimiter",
    "MaxOfRateLimiter",
    "RateLimiter",
    "default_controller_rate_limiter",
]
