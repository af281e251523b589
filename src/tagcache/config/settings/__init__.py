"""Config settings – env-based configuration."""
from tagcache.config.settings.base import Settings
from tagcache.config.settings.cache import CacheSettings
from tagcache.config.settings.loaders import EnvSettingsLoader, SettingsLoader

__all__ = ["CacheSettings", "EnvSettingsLoader", "Settings", "SettingsLoader"]
