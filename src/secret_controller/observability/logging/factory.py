"""Observability – JsonLoggerFactory."""
from __future__ import annotations

import logging
from typing import Any

import structlog

from secret_controller.observability.logging.filters import DEFAULT_SENSITIVE_FIELDS, SensitiveFieldsFilter


class JsonLoggerFactory:
    """Configure structlog for JSON output through the stdlib root logger."""

    @staticmethod
    def configure(
        level: int | str = logging.INFO,
        sensitive_fields: frozenset[str] | None = DEFAULT_SENSITIVE_FIELDS,
    ) -> None:
        if isinstance(level, str):
            level = logging.getLevelName(level.upper())

        shared_processors: list[Any] = [
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
        ]
        if sensitive_fields:
            shared_processors.append(SensitiveFieldsFilter(sensitive_fields))

        structlog.configure(
            processors=shared_processors + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )
        formatter = structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                structlog.processors.JSONRenderer(),
            ],
        )
        handler = logging.StreamHandler()
        handler.setFormatter(formatter)
        root = logging.getLogger()
        root.handlers.clear()
        root.addHandler(handler)
        root.setLevel(level)

        # the kubernetes client logs request bodies (secret data) at DEBUG
        logging.getLogger("kubernetes").setLevel(max(level, logging.INFO))
        logging.getLogger("urllib3").setLevel(max(level, logging.WARNING))


__all__ = ["JsonLoggerFactory"]
