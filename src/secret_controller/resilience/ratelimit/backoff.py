"""Resilience – backoff strategies."""
from __future__ import annotations

import abc


class BackoffStrategy(abc.ABC):
    """Compute wait duration (seconds) after the *attempt*-th failure."""

    @abc.abstractmethod
    def compute(self, attempt: int) -> float: ...


class ExponentialBackoff(BackoffStrategy):
    """Delay grows exponentially: ``base_delay * 2^attempt``, capped at ``max_delay``."""

    def __init__(self, base_delay: float = 0.005, max_delay: float = 1000.0) -> None:
        self._base = base_delay
        self._max = max_delay

    def compute(self, attempt: int) -> float:
        # 2 ** attempt overflows float conversion long before it matters
        if attempt >= 64:
            return self._max
        return min(self._base * (2 ** attempt), self._max)


__all__ = ["BackoffStrategy", "ExponentialBackoff"]
