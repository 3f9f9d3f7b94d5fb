"""Application – SecretMaterializer.

Turns a :class:`SecretSpecification` into the byte-valued ``data`` of its
derived Secret.  Entries are resolved in declared order; the first failure
aborts the whole specification so a Secret is never written half-resolved.
"""
from __future__ import annotations

from secret_controller.application.template import Template, TemplateFunction
from secret_controller.kernel.errors import ValidationError, error_text
from secret_controller.kernel.resources import DerivedSecret, SecretEntry, SecretSpecification
from secret_controller.observability.logging import get_logger
from secret_controller.vault import VaultProvider

logger = get_logger(__name__)


class SecretMaterializer:
    """Resolve specifications against a :class:`VaultProvider`.

    Template entries may call two functions:

    ``secretValue "name"``
        latest version of *name*.
    ``secretValueForVersion "name" "version"``
        exactly that version of *name*.

    A vault failure inside a template does not fail the entry; the error
    message is rendered in place of the value.
    """

    def __init__(self, provider: VaultProvider) -> None:
        self._provider = provider

    def template_functions(self, spec_key: str = "", output_key: str = "") -> dict[str, TemplateFunction]:
        provider = self._provider
        log = logger.bind(key=spec_key, output_key=output_key)

        async def secret_value(name: str) -> str:
            try:
                return await provider.get_secret_value(name)
            except Exception as exc:
                log.warning("template.lookup_failed", vault_name=name, error=error_text(exc))
                return error_text(exc)

        async def secret_value_for_version(name: str, version: str) -> str:
            try:
                return await provider.get_secret_value_for_version(name, version)
            except Exception as exc:
                log.warning(
                    "template.lookup_failed", vault_name=name, vault_version=version, error=error_text(exc)
                )
                return error_text(exc)

        return {
            "secretValue": secret_value,
            "secretValueForVersion": secret_value_for_version,
        }

    async def resolve_entry(
        self, entry: SecretEntry, spec_key: str = "", template: Template | None = None
    ) -> str:
        """Return the string value of one already validated entry."""
        if entry.is_template_entry:
            if template is None:
                template = Template.parse(entry.template, name=entry.output_key)
            return await template.render(self.template_functions(spec_key, entry.output_key))
        return await self._provider.get_secret_value_for_version(entry.vault_name, entry.vault_version)

    async def materialize(self, spec: SecretSpecification) -> dict[str, bytes]:
        """Return ``output_key -> UTF-8 bytes`` for every entry of *spec*.

        Raises :class:`ValidationError`, :class:`TemplateSyntaxError` or
        :class:`VaultError`; no partial result is returned.
        """
        seen: set[str] = set()
        templates: dict[str, Template] = {}
        for entry in spec.items:
            entry.validate()
            if entry.output_key in seen:
                raise ValidationError(
                    f"duplicate outputKey {entry.output_key!r}",
                    errors=[{"field": "outputKey", "reason": "duplicate"}],
                    detail={"output_key": entry.output_key},
                )
            seen.add(entry.output_key)
            if entry.is_template_entry:
                # syntax and function names are checked before any lookup
                templates[entry.output_key] = Template.parse(entry.template, name=entry.output_key)
                templates[entry.output_key].check(self.template_functions())

        data: dict[str, bytes] = {}
        for entry in spec.items:
            value = await self.resolve_entry(entry, spec.key, templates.get(entry.output_key))
            data[entry.output_key] = value.encode("utf-8")
        logger.debug("materialize.completed", key=spec.key, keys=sorted(data))
        return data

    async def build_secret(self, spec: SecretSpecification) -> DerivedSecret:
        return DerivedSecret.for_specification(spec, await self.materialize(spec))


__all__ = ["SecretMaterializer"]
