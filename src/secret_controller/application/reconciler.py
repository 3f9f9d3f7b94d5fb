"""Application – Reconciler.

One reconcile brings the derived Secret of one specification in line with
the vault.  It is idempotent: running it twice against unchanged inputs
writes the same Secret twice.
"""
from __future__ import annotations

from secret_controller.application.materializer import SecretMaterializer
from secret_controller.application.ports import EVENT_TYPE_NORMAL, EventRecorder, SecretWriter, SpecificationLister
from secret_controller.kernel.errors import NotFoundError, ValidationError, error_text
from secret_controller.kernel.resources import SecretSpecification, split_key
from secret_controller.observability.logging import get_logger

logger = get_logger(__name__)

REASON_CREATED = "Created"
REASON_SYNCED = "Synced"
MESSAGE_CREATED = "Vault secret created successfully"
MESSAGE_SYNCED = "Vault secret synced successfully"


class Reconciler:
    """Reconcile a queue key against the cache, the vault and the cluster.

    Raising from :meth:`reconcile` asks the caller to retry the key later;
    returning normally means the key is done.
    """

    def __init__(
        self,
        lister: SpecificationLister,
        materializer: SecretMaterializer,
        writer: SecretWriter,
        recorder: EventRecorder,
    ) -> None:
        self._lister = lister
        self._materializer = materializer
        self._writer = writer
        self._recorder = recorder

    async def reconcile(self, key: str) -> None:
        try:
            namespace, name = split_key(key)
        except ValidationError as exc:
            # retrying cannot fix a malformed key
            logger.error("reconcile.invalid_key", key=key, error=error_text(exc))
            return

        spec = self._lister.get(namespace, name)
        if spec is None:
            logger.info("reconcile.deleted", key=key)
            return

        secret = await self._materializer.build_secret(spec)

        try:
            await self._writer.update(secret)
        except NotFoundError:
            await self._writer.create(secret)
            logger.info("reconcile.created", key=key, target=secret.key)
            await self._record(spec, REASON_CREATED, MESSAGE_CREATED)
        else:
            logger.info("reconcile.synced", key=key, target=secret.key)
            await self._record(spec, REASON_SYNCED, MESSAGE_SYNCED)

    async def _record(self, spec: SecretSpecification, reason: str, message: str) -> None:
        try:
            await self._recorder.record(spec, EVENT_TYPE_NORMAL, reason, message)
        except Exception as exc:
            logger.warning("reconcile.event_failed", key=spec.key, reason=reason, error=error_text(exc))


__all__ = [
    "MESSAGE_CREATED",
    "MESSAGE_SYNCED",
    "REASON_CREATED",
    "REASON_SYNCED",
    "Reconciler",
]
