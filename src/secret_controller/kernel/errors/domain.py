"""Domain errors – invalid specifications, missing objects, bad templates."""

from __future__ import annotations

from typing import Any

from secret_controller.kernel.errors.base import BaseError


class DomainError(BaseError):
    """Raised when a specification cannot be turned into a Secret as declared."""

    default_code = "domain_error"


class ValidationError(DomainError):
    """A specification or one of its entries does not meet validation rules.

    ``errors`` is a list of field-level validation failures.
    """

    default_code = "validation_error"

    def __init__(
        self,
        message: str,
        *,
        errors: list[dict[str, Any]] | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.errors: list[dict[str, Any]] = errors or []

    def to_dict(self) -> dict[str, Any]:
        base = super().to_dict()
        base["errors"] = self.errors
        return base


class NotFoundError(DomainError):
    """The requested object does not exist."""

    default_code = "not_found"

    def __init__(
        self,
        resource: str,
        identifier: Any = None,
        **kwargs: Any,
    ) -> None:
        msg = f"{resource} not found"
        if identifier is not None:
            msg = f"{resource} '{identifier}' not found"
        super().__init__(msg, **kwargs)
        self.resource = resource
        self.identifier = identifier


class TemplateSyntaxError(DomainError):
    """A template could not be parsed, or calls a function that is not defined."""

    default_code = "template_syntax_error"

    def __init__(
        self,
        message: str,
        *,
        template: str | None = None,
        position: int | None = None,
        **kwargs: Any,
    ) -> None:
        prefix = f"template: {template}: " if template else "template: "
        super().__init__(prefix + message, **kwargs)
        self.template = template
        self.position = position


__all__ = [
    "DomainError",
    "NotFoundError",
    "TemplateSyntaxError",
    "ValidationError",
]
