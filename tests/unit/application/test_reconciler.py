"""Unit tests for Reconciler."""

from __future__ import annotations

import asyncio

import pytest

from secret_controller.application import EVENT_TYPE_NORMAL, Reconciler, SecretMaterializer
from secret_controller.application.reconciler import MESSAGE_CREATED, MESSAGE_SYNCED, REASON_CREATED, REASON_SYNCED
from secret_controller.kernel.errors import TransportError, VaultSecretNotFoundError
from secret_controller.kernel.resources import SecretEntry, SecretSpecification
from secret_controller.testing.fakes import (
    FakeVaultProvider,
    InMemorySecretWriter,
    RecordingEventRecorder,
    StaticSpecificationSource,
)


def _spec(*items: SecretEntry, name: str = "db") -> SecretSpecification:
    return SecretSpecification(
        namespace="apps",
        name=name,
        secret_name=f"{name}-credentials",
        items=items or (SecretEntry(output_key="password", vault_name="db-password"),),
        uid=f"uid-{name}",
        api_version="secretcontroller.io/v1alpha1",
        kind="VaultSecret",
    )


class _Harness:
    def __init__(self, *specs: SecretSpecification) -> None:
        self.vault = FakeVaultProvider().seed("db-password", "s3cr3t")
        self.source = StaticSpecificationSource(list(specs))
        self.writer = InMemorySecretWriter()
        self.recorder = RecordingEventRecorder()
        self.reconciler = Reconciler(self.source, SecretMaterializer(self.vault), self.writer, self.recorder)

    def reconcile(self, key: str) -> None:
        asyncio.run(self.reconciler.reconcile(key))


# ---------------------------------------------------------------------------
# Create vs update
# ---------------------------------------------------------------------------


class TestCreateOrUpdate:
    def test_first_reconcile_creates(self) -> None:
        h = _Harness(_spec())
        h.reconcile("apps/db")
        assert len(h.writer.creates) == 1
        assert h.writer.updates == []
        secret = h.writer.secrets["apps/db-credentials"]
        assert secret.data == {"password": b"s3cr3t"}
        assert secret.owner_references[0].name == "db"

    def test_created_event(self) -> None:
        h = _Harness(_spec())
        h.reconcile("apps/db")
        event = h.recorder.events[0]
        assert (event.key, event.event_type, event.reason, event.message) == (
            "apps/db",
            EVENT_TYPE_NORMAL,
            REASON_CREATED,
            MESSAGE_CREATED,
        )

    def test_second_reconcile_updates(self) -> None:
        h = _Harness(_spec())
        h.reconcile("apps/db")
        h.reconcile("apps/db")
        assert len(h.writer.creates) == 1
        assert len(h.writer.updates) == 1
        assert h.recorder.reasons == [REASON_CREATED, REASON_SYNCED]
        assert h.recorder.events[1].message == MESSAGE_SYNCED

    def test_idempotent_output(self) -> None:
        h = _Harness(_spec())
        h.reconcile("apps/db")
        h.reconcile("apps/db")
        assert h.writer.creates[0] == h.writer.updates[0]

    def test_update_picks_up_new_vault_value(self) -> None:
        h = _Harness(_spec())
        h.reconcile("apps/db")
        h.vault.seed("db-password", "rotated")
        h.reconcile("apps/db")
        assert h.writer.secrets["apps/db-credentials"].data == {"password": b"rotated"}


# ---------------------------------------------------------------------------
# Deletion and malformed keys
# ---------------------------------------------------------------------------


class TestDeletionTolerance:
    def test_missing_specification_is_success(self) -> None:
        h = _Harness()
        h.reconcile("apps/gone")
        assert h.writer.writes == 0
        assert h.recorder.events == []
        assert h.vault.calls == []

    def test_malformed_key_is_dropped(self) -> None:
        h = _Harness(_spec())
        h.reconcile("a/b/c")
        assert h.writer.writes == 0


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------


class TestFailures:
    def test_materialize_failure_writes_nothing(self) -> None:
        h = _Harness(_spec(SecretEntry(output_key="k", vault_name="missing")))
        with pytest.raises(VaultSecretNotFoundError):
            h.reconcile("apps/db")
        assert h.writer.writes == 0
        assert h.recorder.events == []

    def test_write_failure_propagates(self) -> None:
        h = _Harness(_spec())
        h.writer.fail_with(TransportError("api down", status_code=503))
        with pytest.raises(TransportError):
            h.reconcile("apps/db")
        assert h.recorder.events == []

    def test_recovery_after_failure_records_only_normal_events(self) -> None:
        h = _Harness(_spec(SecretEntry(output_key="k", vault_name="late")))
        with pytest.raises(VaultSecretNotFoundError):
            h.reconcile("apps/db")
        h.vault.seed("late", "v")
        h.reconcile("apps/db")
        assert [event.event_type for event in h.recorder.events] == [EVENT_TYPE_NORMAL]
        assert h.recorder.reasons == [REASON_CREATED]

    def test_event_failure_does_not_fail_reconcile(self) -> None:
        h = _Harness(_spec())
        h.recorder.fail_with(TransportError("events forbidden", status_code=403))
        h.reconcile("apps/db")
        assert len(h.writer.creates) == 1

    def test_one_specification_failure_does_not_affect_another(self) -> None:
        bad = _spec(SecretEntry(output_key="k", vault_name="missing"), name="bad")
        good = _spec(name="good")
        h = _Harness(bad, good)
        with pytest.raises(VaultSecretNotFoundError):
            h.reconcile("apps/bad")
        h.reconcile("apps/good")
        assert list(h.writer.secrets) == ["apps/good-credentials"]
