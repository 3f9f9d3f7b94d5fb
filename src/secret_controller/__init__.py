"""
secret_controller – materializes Kubernetes Secrets from vault-backed specifications.

Import path convention::

    from secret_controller.kernel.errors import ValidationError
    from secret_controller.kernel.resources import SecretSpecification
    from secret_controller.application.controller import Controller
    from secret_controller.adapters.vault import HashiCorpVaultProvider
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
