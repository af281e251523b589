"""Config – 12-factor settings and the static cache tables."""

from tagcache.config.settings import CacheSettings, EnvSettingsLoader, Settings, SettingsLoader
from tagcache.config.tables import CacheTables, load_tables, load_tables_file
from tagcache.config.validation import (
    ConfigError,
    InvalidSettingValueError,
    MissingRequiredSettingError,
)

__all__ = [
    "CacheSettings",
    "CacheTables",
    "ConfigError",
    "EnvSettingsLoader",
    "InvalidSettingValueError",
    "MissingRequiredSettingError",
    "Settings",
    "SettingsLoader",
    "load_tables",
    "load_tables_file",
]
