"""Resilience – backoff strategies and rate limiters for re-queued work."""
from secret_controller.resilience.ratelimit.backoff import BackoffStrategy, ExponentialBackoff
from secret_controller.resilience.ratelimit.limiters import (
    BucketRateLimiter,
    ItemExponentialFailureRateLimiter,
    MaxOfRateLimiter,
    RateLimiter,
    default_controller_rate_limiter,
)

__all__ = [
    "BackoffStrategy",
    "BucketRateLimiter",
    "ExponentialBackoff",
    "ItemExponentialFailureRateLimiter",
    "MaxOfRateLimiter",
    "RateLimiter",
    "default_controller_rate_limiter",
]
