"""Application workqueue – coalescing, rate-limited queue of identities."""
from secret_controller.application.workqueue.queue import RateLimitingQueue

__all__ = ["RateLimitingQueue"]
