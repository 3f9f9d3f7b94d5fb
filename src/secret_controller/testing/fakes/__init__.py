"""Testing fakes – in-memory doubles for the controller ports."""
from secret_controller.testing.fakes.kubernetes import (
    InMemorySecretWriter,
    RecordedEvent,
    RecordingEventRecorder,
    StaticSpecificationSource,
)
from secret_controller.testing.fakes.vault import FakeVaultProvider

__all__ = [
    "FakeVaultProvider",
    "InMemorySecretWriter",
    "RecordedEvent",
    "RecordingEventRecorder",
    "StaticSpecificationSource",
]
