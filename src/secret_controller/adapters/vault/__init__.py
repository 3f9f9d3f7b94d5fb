"""HashiCorp Vault adapter – authenticator and KV v2 provider."""
from secret_controller.adapters.vault.auth import DEFAULT_CREDENTIALS_FILE, VaultAuthenticator, VaultCredentials
from secret_controller.adapters.vault.provider import HashiCorpVaultProvider

__all__ = ["DEFAULT_CREDENTIALS_FILE", "HashiCorpVaultProvider", "VaultAuthenticator", "VaultCredentials"]
