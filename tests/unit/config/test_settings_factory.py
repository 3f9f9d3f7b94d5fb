"""Unit tests for SettingsFactory."""

from __future__ import annotations

import pytest

from secret_controller.config import (
    ConfigError,
    ControllerSettings,
    EnvSettingsLoader,
    InvalidSettingValueError,
    SettingsFactory,
    SettingsLoader,
)


class _StaticLoader(SettingsLoader):
    def __init__(self, **values: object) -> None:
        self._values = values

    def load(self, settings_class):  # type: ignore[no-untyped-def]
        return settings_class(**self._values)


class _FailingLoader(SettingsLoader):
    def load(self, settings_class):  # type: ignore[no-untyped-def]
        raise ConfigError("loader exploded")


class TestSettingsFactory:
    def test_no_loaders_uses_defaults(self) -> None:
        settings = SettingsFactory.create(ControllerSettings)
        assert settings == ControllerSettings()

    def test_later_loader_wins(self) -> None:
        settings = SettingsFactory.create(
            ControllerSettings, [_StaticLoader(workers=2), _StaticLoader(workers=5)]
        )
        assert settings.workers == 5

    def test_overrides_win_over_loaders(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SECRET_CONTROLLER_WORKERS", "3")
        settings = SettingsFactory.create(ControllerSettings, [EnvSettingsLoader()], overrides={"workers": 8})
        assert settings.workers == 8

    def test_none_overrides_ignored(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SECRET_CONTROLLER_NAMESPACE", "apps")
        settings = SettingsFactory.create(
            ControllerSettings, [EnvSettingsLoader()], overrides={"namespace": None, "workers": None}
        )
        assert settings.namespace == "apps"
        assert settings.workers == 1

    def test_loader_errors_propagate(self) -> None:
        with pytest.raises(ConfigError, match="loader exploded"):
            SettingsFactory.create(ControllerSettings, [_FailingLoader()])

    def test_invalid_override_raises(self) -> None:
        with pytest.raises(InvalidSettingValueError):
            SettingsFactory.create(ControllerSettings, overrides={"workers": 0})

    def test_unknown_override_wrapped_in_config_error(self) -> None:
        with pytest.raises(ConfigError, match="ControllerSettings"):
            SettingsFactory.create(ControllerSettings, overrides={"no_such_field": 1})
