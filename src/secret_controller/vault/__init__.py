"""Vault – the provider port the materializer resolves values through."""
from secret_controller.vault.port import VaultProvider

__all__ = ["VaultProvider"]
