"""Kernel error hierarchy – public re-export surface.

Hierarchy::

    BaseError
    └── CacheError                 (cache.py)
        ├── PolicyConfigError
        └── InvalidationConfigError

Configuration loading errors live in :mod:`tagcache.config.validation` and
derive from :class:`BaseError` as well.
"""

from tagcache.kernel.errors.base import BaseError
from tagcache.kernel.errors.cache import (
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
