"""Application – materialization, reconciliation and the dispatch loop."""
from secret_controller.application.controller import Controller
from secret_controller.application.materializer import SecretMaterializer
from secret_controller.application.ports import (
    EVENT_TYPE_NORMAL,
    EventRecorder,
    SecretWriter,
    SpecificationLister,
    SpecificationSource,
    WatchHandler,
)
from secret_controller.application.reconciler import Reconciler
from secret_controller.application.workqueue import RateLimitingQueue

__all__ = [
    "EVENT_TYPE_NORMAL",
    "Controller",
    "EventRecorder",
    "RateLimitingQueue",
    "Reconciler",
    "SecretMaterializer",
    "SecretWriter",
    "SpecificationLister",
    "SpecificationSource",
    "WatchHandler",
]
