"""Application cache – EntryStore (entries + tag index under one lock)."""
from __future__ import annotations

import re
import threading
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, Callable

from tagcache.application.cache.keys import resource_path_of
from tagcache.application.cache.tags import TagIndex
from tagcache.kernel.time import Clock, MonotonicClock
from tagcache.observability.logging import get_logger

__all__ = ["CacheEntry", "EntryStore", "KeyMatcher", "key_matcher"]

_log = get_logger(__name__)

KeyMatcher = Callable[[str], bool]


def key_matcher(pattern: str, *, regex: bool = False) -> KeyMatcher | None:
    """Build the predicate a pattern invalidation applies to each key.

    By default *pattern* is a substring of the key's resource-path portion
    (so a prefix works too). With ``regex=True`` it is a regular expression
    searched in the full key. Returns ``None`` for an invalid expression.
    """
    if not regex:
        return lambda key: pattern in resource_path_of(key)
    try:
        compiled = re.compile(pattern)
    except re.error as exc:
        _log.warning("cache_invalid_pattern", pattern=pattern, error=str(exc))
        return None
    return lambda key: compiled.search(key) is not None


@dataclass(frozen=True)
class CacheEntry:
    """One cached value. Timestamps are milliseconds on the store's clock."""

    key: str
    value: Any
    tags: frozenset[str]
    stored_at: float
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return self.expires_at <= now


class EntryStore:
    """In-memory ``key -> CacheEntry`` map with lazy expiry and a tag index.

    Every mutation, including the eviction performed by :meth:`get`, happens
    under a single re-entrant lock, so the tag index and each entry's ``tags``
    always agree.
    """

    def __init__(self, clock: Clock | None = None) -> None:
        self._clock = clock or MonotonicClock()
        self._entries: dict[str, CacheEntry] = {}
        self._index = TagIndex()
        self._lock = threading.RLock()
        self.evictions = 0

    @property
    def clock(self) -> Clock:
        return self._clock

    # ------------------------------------------------------------------
    # Entry operations
    # ------------------------------------------------------------------

    def get(self, key: str) -> CacheEntry | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.is_expired(self._clock.now()):
                self._remove(key)
                self.evictions += 1
                return None
            return entry

    def set(self, key: str, value: Any, ttl_ms: float, tags: Iterable[str] = ()) -> bool:
        """Store *value* under *key*, replacing any previous entry.

        Returns ``False`` without storing anything when *ttl_ms* is not
        positive.
        """
        if ttl_ms <= 0:
            return False
        with self._lock:
            now = self._clock.now()
            entry = CacheEntry(
                key=key,
                value=value,
                tags=frozenset(tags),
                stored_at=now,
                expires_at=now + ttl_ms,
            )
            self._remove(key)
            self._entries[key] = entry
            self._index.add(key, entry.tags)
            return True

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._remove(key)

    def clear(self) -> int:
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            self._index.clear()
            return count

    def sweep(self, now: float | None = None) -> int:
        """Remove every entry with ``expires_at <= now``, read or not."""
        with self._lock:
            now = self._clock.now() if now is None else now
            expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
            for key in expired:
                self._remove(key)
            self.evictions += len(expired)
            return len(expired)

    # ------------------------------------------------------------------
    # Invalidation
    # ------------------------------------------------------------------

    def invalidate_tag(self, tag: str) -> int:
        with self._lock:
            keys = self._index.pop(tag)
            for key in keys:
                self._remove(key)
            return len(keys)

    def invalidate_tag_prefix(self, prefix: str) -> int:
        """Remove every entry carrying a tag that starts with *prefix*."""
        with self._lock:
            return sum(
                self.invalidate_tag(tag) for tag in self._index.tags() if tag.startswith(prefix)
            )

    def invalidate_pattern(self, pattern: str, *, regex: bool = False) -> int:
        """Remove keys matching *pattern*; see :func:`key_matcher`.

        An invalid regular expression matches nothing.
        """
        matches = key_matcher(pattern, regex=regex)
        if matches is None:
            return 0
        return self.invalidate_where(matches)

    def invalidate_where(self, matches: KeyMatcher) -> int:
        with self._lock:
            keys = [key for key in self._entries if matches(key)]
            for key in keys:
                self._remove(key)
            return len(keys)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def entries(self) -> list[CacheEntry]:
        with self._lock:
            return list(self._entries.values())

    def tag_count(self) -> int:
        with self._lock:
            return len(self._index)

    def keys_for_tag(self, tag: str) -> frozenset[str]:
        with self._lock:
            return self._index.keys_for(tag)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def _remove(self, key: str) -> bool:
        entry = self._entries.pop(key, None)
        if entry is None:
            return False
        self._index.discard(key, entry.tags)
        return True
