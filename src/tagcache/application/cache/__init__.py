"""Application cache – fingerprints, tagged entry store, stampede control.

``CacheRuntime`` lives in :mod:`tagcache.application.cache.lifecycle` and is
imported from there; it depends on :mod:`tagcache.config`, which in turn
depends on this package.
"""
from tagcache.application.cache.cache import CacheStats, EntryInfo, ReadThroughCache
from tagcache.application.cache.decorators import cached
from tagcache.application.cache.invalidation import (
    InvalidationPlan,
    InvalidationRouter,
    InvalidationSpec,
)
from tagcache.application.cache.keys import CacheKey, body_digest, build_key, resource_path_of
from tagcache.application.cache.policy import NOT_CACHEABLE, PolicyEntry, PolicyTable, TtlClass
from tagcache.application.cache.stampede import StampedeCoordinator
from tagcache.application.cache.store import CacheEntry, EntryStore
from tagcache.application.cache.sweeper import CacheSweeper, SweepResult
from tagcache.application.cache.tags import CacheInvalidationEvent, CacheTags, TagIndex

__all__ = [
    "NOT_CACHEABLE",
    "CacheEntry",
    "CacheInvalidationEvent",
    "CacheKey",
    "CacheStats",
    "CacheSweeper",
    "CacheTags",
    "EntryInfo",
    "EntryStore",
    "InvalidationPlan",
    "InvalidationRouter",
    "InvalidationSpec",
    "PolicyEntry",
    "PolicyTable",
    "ReadThroughCache",
    "StampedeCoordinator",
    "SweepResult",
    "TagIndex",
    "TtlClass",
    "body_digest",
    "build_key",
    "cached",
    "resource_path_of",
]
