"""Config – ControllerSettings for the secret-controller process."""
from __future__ import annotations

import dataclasses
from typing import ClassVar

from secret_controller.config.settings.base import Settings
from secret_controller.config.validation import InvalidSettingValueError

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclasses.dataclass
class ControllerSettings(Settings):
    """Everything the process needs to reach the cluster and the vault.

    Read from ``SECRET_CONTROLLER_*`` environment variables; command-line
    options override them.
    """

    _prefix: ClassVar[str] = "SECRET_CONTROLLER"

    # cluster connection; empty kubeconfig means in-cluster config
    kubeconfig: str = ""
    master_url: str = ""
    namespace: str = ""

    resource_group: str = "secretcontroller.io"
    resource_version: str = "v1alpha1"
    resource_plural: str = "vaultsecrets"

    vault_addr: str = "http://127.0.0.1:8200"
    vault_mount_point: str = "secret"
    vault_token: str = ""
    vault_role_id: str = ""
    vault_secret_id: str = ""
    vault_credentials_file: str = "/etc/vault/credentials.json"

    workers: int = 1
    log_level: str = "INFO"

    backoff_base_delay: float = 0.005
    backoff_max_delay: float = 1000.0
    rate_limit_qps: float = 10.0
    rate_limit_burst: int = 100
    watch_timeout_seconds: int = 300

    @property
    def api_version(self) -> str:
        return f"{self.resource_group}/{self.resource_version}"

    def _validate(self) -> None:
        if self.workers < 1:
            raise InvalidSettingValueError("workers", self.workers, "must be at least 1")
        if self.backoff_base_delay <= 0:
            raise InvalidSettingValueError("backoff_base_delay", self.backoff_base_delay, "must be positive")
        if self.backoff_max_delay < self.backoff_base_delay:
            raise InvalidSettingValueError(
                "backoff_max_delay", self.backoff_max_delay, "must not be below backoff_base_delay"
            )
        if self.rate_limit_qps <= 0:
            raise InvalidSettingValueError("rate_limit_qps", self.rate_limit_qps, "must be positive")
        if self.rate_limit_burst < 1:
            raise InvalidSettingValueError("rate_limit_burst", self.rate_limit_burst, "must be at least 1")
        if self.watch_timeout_seconds < 1:
            raise InvalidSettingValueError("watch_timeout_seconds", self.watch_timeout_seconds, "must be positive")
        level = self.log_level.upper()
        if level not in _LOG_LEVELS:
            raise InvalidSettingValueError("log_level", self.log_level, f"must be one of {', '.join(_LOG_LEVELS)}")
        self.log_level = level


__all__ = ["ControllerSettings"]
