"""Config settings – CacheSettings."""
from __future__ import annotations

import dataclasses
import logging
from typing import ClassVar

from tagcache.config.settings.base import Settings
from tagcache.config.validation import InvalidSettingValueError

_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


@dataclasses.dataclass
class CacheSettings(Settings):
    """Process-wide cache settings, read from ``TAGCACHE_*`` variables.

    ``enabled=False`` keeps the cache wired in but makes every read a miss.
    ``sweep_interval_seconds=0`` disables the background sweeper.
    """

    _prefix: ClassVar[str] = "TAGCACHE"

    enabled: bool = True
    sweep_interval_seconds: float = 60.0
    policy_file: str = ""
    log_level: str = "INFO"
    log_json: bool = True

    def _validate(self) -> None:
        if self.sweep_interval_seconds < 0:
            raise InvalidSettingValueError(
                "sweep_interval_seconds", self.sweep_interval_seconds, "must be >= 0"
            )
        if self.log_level.upper() not in _LOG_LEVELS:
            raise InvalidSettingValueError(
                "log_level", self.log_level, f"expected one of {sorted(_LOG_LEVELS)}"
            )

    @property
    def log_level_value(self) -> int:
        return logging.getLevelName(self.log_level.upper())


__all__ = ["CacheSettings"]
