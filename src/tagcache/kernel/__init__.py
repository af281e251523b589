"""Kernel – framework-agnostic building blocks."""

from tagcache.kernel.errors import (
    BaseError,
    CacheError,
    InvalidationConfigError,
    PolicyConfigError,
)

__all__ = [
    "BaseError",
    "CacheError",
    "InvalidationConfigError",
    "PolicyConfigError",
]
