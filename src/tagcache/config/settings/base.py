"""Config settings – Settings base class."""
from __future__ import annotations

import dataclasses
from typing import ClassVar


@dataclasses.dataclass
class Settings:
    """Dataclass read from ``<_prefix>_<FIELD>`` environment variables.

    Subclasses set ``_prefix`` and may override :meth:`_validate`, which runs
    after every construction, including construction by a loader.
    """

    _prefix: ClassVar[str] = ""

    def __post_init__(self) -> None:
        self._validate()

    @classmethod
    def env_key(cls, field_name: str) -> str:
        """Environment variable holding *field_name*: ``TAGCACHE_LOG_LEVEL``."""
        if not cls._prefix:
            return field_name.upper()
        return f"{cls._prefix}_{field_name}".upper()

    def _validate(self) -> None:
        """Override to add cross-field validation."""


__all__ = ["Settings"]
