"""Resilience – backoff and rate limiting for the work queue."""
