"""Cache errors – raised while building cache configuration.

Nothing on the read or write path raises these: once a cache is running, its
worst failure mode is behaving as if empty.
"""

from __future__ import annotations

from typing import Any

from tagcache.kernel.errors.base import BaseError


class CacheError(BaseError):
    """Root of the cache-specific errors."""

    default_code = "cache_error"


class PolicyConfigError(CacheError):
    """A policy table entry is malformed."""

    default_code = "policy_config_error"

    def __init__(
        self,
        message: str,
        *,
        resource_prefix: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.resource_prefix = resource_prefix


class InvalidationConfigError(CacheError):
    """An invalidation table entry is malformed."""

    default_code = "invalidation_config_error"

    def __init__(
        self,
        message: str,
        *,
        resource_prefix: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.resource_prefix = resource_prefix


__all__ = ["CacheError", "InvalidationConfigError", "PolicyConfigError"]
