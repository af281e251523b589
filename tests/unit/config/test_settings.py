"""Unit tests for CacheSettings and EnvSettingsLoader."""

import logging
from dataclasses import dataclass
from typing import ClassVar

import pytest

from tagcache.config import (
    CacheSettings,
    ConfigError,
    EnvSettingsLoader,
    InvalidSettingValueError,
    MissingRequiredSettingError,
    Settings,
)


@dataclass
class RequiredSettings(Settings):
    _prefix: ClassVar[str] = "APP"

    dsn: str
    pool: int = 5
    hosts: list[str] | None = None


class TestCacheSettings:
    def test_defaults(self) -> None:
        settings = CacheSettings()
        assert settings.enabled is True
        assert settings.sweep_interval_seconds == 60.0
        assert settings.policy_file == ""
        assert settings.log_level_value == logging.INFO

    def test_negative_interval_is_rejected(self) -> None:
        with pytest.raises(InvalidSettingValueError):
            CacheSettings(sweep_interval_seconds=-1)

    def test_unknown_log_level_is_rejected(self) -> None:
        with pytest.raises(InvalidSettingValueError):
            CacheSettings(log_level="LOUD")


class TestEnvSettingsLoader:
    def test_loads_prefixed_variables(self) -> None:
        settings = EnvSettingsLoader(
            {
                "TAGCACHE_ENABLED": "false",
                "TAGCACHE_SWEEP_INTERVAL_SECONDS": "2.5",
                "TAGCACHE_POLICY_FILE": "/etc/cache.json",
                "TAGCACHE_LOG_LEVEL": "debug",
            }
        ).load(CacheSettings)
        assert settings.enabled is False
        assert settings.sweep_interval_seconds == 2.5
        assert settings.policy_file == "/etc/cache.json"
        assert settings.log_level_value == logging.DEBUG

    def test_reads_os_environ(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TAGCACHE_LOG_JSON", "no")
        assert EnvSettingsLoader().load(CacheSettings).log_json is False

    def test_defaults_when_absent(self) -> None:
        assert EnvSettingsLoader({}).load(CacheSettings) == CacheSettings()

    def test_bad_number(self) -> None:
        with pytest.raises(InvalidSettingValueError):
            EnvSettingsLoader({"TAGCACHE_SWEEP_INTERVAL_SECONDS": "soon"}).load(CacheSettings)

    def test_validation_error_surfaces(self) -> None:
        with pytest.raises(InvalidSettingValueError):
            EnvSettingsLoader({"TAGCACHE_SWEEP_INTERVAL_SECONDS": "-3"}).load(CacheSettings)

    def test_missing_required(self) -> None:
        with pytest.raises(MissingRequiredSettingError) as info:
            EnvSettingsLoader({}).load(RequiredSettings)
        assert info.value.setting_name == "APP_DSN"
        assert isinstance(info.value, ConfigError)

    def test_int_and_required(self) -> None:
        settings = EnvSettingsLoader({"APP_DSN": "postgres://x", "APP_POOL": "9"}).load(RequiredSettings)
        assert settings.dsn == "postgres://x"
        assert settings.pool == 9

    def test_env_key(self) -> None:
        assert CacheSettings.env_key("log_level") == "TAGCACHE_LOG_LEVEL"
        assert RequiredSettings.env_key("dsn") == "APP_DSN"
        assert Settings.env_key("debug") == "DEBUG"
