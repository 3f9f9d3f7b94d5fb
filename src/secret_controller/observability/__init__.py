"""Observability – structured logging for the controller."""
