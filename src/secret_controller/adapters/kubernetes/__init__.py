"""Kubernetes adapters – informer, cache, Secret writer and event recorder."""
from secret_controller.adapters.kubernetes.cache import SpecificationCache
from secret_controller.adapters.kubernetes.informer import SpecificationInformer
from secret_controller.adapters.kubernetes.recorder import DEFAULT_COMPONENT, KubernetesEventRecorder
from secret_controller.adapters.kubernetes.writer import KubernetesSecretWriter, to_v1_secret

__all__ = [
    "DEFAULT_COMPONENT",
    "KubernetesEventRecorder",
    "KubernetesSecretWriter",
    "SpecificationCache",
    "SpecificationInformer",
    "to_v1_secret",
]
