"""Application cache – ReadThroughCache façade."""
from __future__ import annotations

import inspect
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, TypeVar

from tagcache.application.cache.invalidation import InvalidationPlan, InvalidationRouter
from tagcache.application.cache.keys import QueryParams, build_key
from tagcache.application.cache.policy import PolicyTable
from tagcache.application.cache.stampede import Producer, StampedeCoordinator
from tagcache.application.cache.store import EntryStore, key_matcher
from tagcache.application.cache.tags import CacheInvalidationEvent
from tagcache.kernel.time import Clock
from tagcache.observability.logging import get_logger

__all__ = ["CacheStats", "EntryInfo", "ReadThroughCache"]

_log = get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class EntryInfo:
    key: str
    tags: tuple[str, ...]
    expires_at: float
    age_ms: float
    ttl_remaining_ms: float


@dataclass(frozen=True)
class CacheStats:
    """Point-in-time snapshot for observability and debugging."""

    size: int
    tag_count: int
    hits: int = 0
    misses: int = 0
    coalesced: int = 0
    evictions: int = 0
    in_flight: int = 0
    entries: list[EntryInfo] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "size": self.size,
            "tag_count": self.tag_count,
            "hits": self.hits,
            "misses": self.misses,
            "coalesced": self.coalesced,
            "evictions": self.evictions,
            "in_flight": self.in_flight,
            "entries": [
                {
                    "key": e.key,
                    "tags": list(e.tags),
                    "expires_at": e.expires_at,
                    "age_ms": e.age_ms,
                    "ttl_remaining_ms": e.ttl_remaining_ms,
                }
                for e in self.entries
            ],
        }


class ReadThroughCache:
    """Single-process read-through cache with tag invalidation.

    Construct one per process (see :class:`~tagcache.application.cache.lifecycle.CacheRuntime`)
    and pass it to the request layer explicitly.

    Reads that miss go through a :class:`StampedeCoordinator`, so N concurrent
    identical misses cost one producer call. Writes purge the tags and
    patterns the :class:`InvalidationRouter` declares before returning, so the
    writer never reads back stale data for what it declared.

    Parameters
    ----------
    clock:
        Millisecond monotonic clock; inject a ``ManualClock`` in tests.
    policies:
        Used by :meth:`read`; defaults to an empty table (nothing cacheable).
    router:
        Used by :meth:`write` and :meth:`invalidate_for_write`.
    enabled:
        When ``False`` nothing is ever stored, so every read is a miss.
    """

    def __init__(
        self,
        *,
        clock: Clock | None = None,
        policies: PolicyTable | None = None,
        router: InvalidationRouter | None = None,
        enabled: bool = True,
    ) -> None:
        self._store = EntryStore(clock)
        self._coordinator = StampedeCoordinator()
        self._policies = policies if policies is not None else PolicyTable()
        self._router = router if router is not None else InvalidationRouter()
        self._enabled = enabled
        self._hits = 0
        self._misses = 0

    @property
    def policies(self) -> PolicyTable:
        return self._policies

    @property
    def router(self) -> InvalidationRouter:
        return self._router

    @property
    def enabled(self) -> bool:
        return self._enabled

    # ------------------------------------------------------------------
    # Entry operations
    # ------------------------------------------------------------------

    def get(self, key: str, default: Any = None) -> Any:
        entry = self._store.get(key)
        if entry is None:
            self._misses += 1
            _log.debug("cache_miss", key=key)
            return default
        self._hits += 1
        _log.debug("cache_hit", key=key)
        return entry.value

    def set(self, key: str, value: Any, ttl_ms: float, tags: Iterable[str] = ()) -> None:
        if not self._enabled:
            return
        if self._store.set(key, value, ttl_ms, tags):
            _log.debug("cache_set", key=key, ttl_ms=ttl_ms)

    def delete(self, key: str) -> bool:
        self._coordinator.detach(key)
        return self._store.delete(key)

    def clear(self) -> None:
        self._coordinator.detach_all()
        removed = self._store.clear()
        _log.info("cache_clear", removed=removed)

    def sweep(self, now: float | None = None) -> int:
        removed = self._store.sweep(now)
        if removed:
            _log.info("cache_sweep", removed=removed, size=len(self._store))
        return removed

    async def fetch_or_join(
        self,
        key: str,
        producer: Producer[T],
        ttl_ms: float,
        tags: Iterable[str] = (),
    ) -> T:
        """Return the cached value for *key* or run *producer* exactly once.

        Concurrent callers for the same missing key share one producer call
        and its outcome. Failures are never cached.
        """
        entry = self._store.get(key)
        if entry is not None:
            self._hits += 1
            return entry.value
        self._misses += 1

        tag_set = frozenset(tags)

        def store_result(value: T) -> None:
            if self._enabled:
                self._store.set(key, value, ttl_ms, tag_set)

        return await self._coordinator.fetch_or_join(
            key, producer, tags=tag_set, store_result=store_result
        )

    # ------------------------------------------------------------------
    # Invalidation
    # ------------------------------------------------------------------

    def invalidate_by_tag(self, tag: str) -> int:
        self._coordinator.detach_tag(tag)
        removed = self._store.invalidate_tag(tag)
        _log.info("cache_invalidate_tag", tag=tag, removed=removed)
        return removed

    def invalidate_by_pattern(self, pattern: str, *, regex: bool = False) -> int:
        matches = key_matcher(pattern, regex=regex)
        if matches is None:
            return 0
        self._coordinator.detach_where(lambda key, _tags: matches(key))
        removed = self._store.invalidate_where(matches)
        _log.info("cache_invalidate_pattern", pattern=pattern, regex=regex, removed=removed)
        return removed

    def invalidate_by_tag_prefix(self, prefix: str) -> int:
        """Purge every entry carrying a tag that starts with *prefix*."""
        self._coordinator.detach_where(lambda _key, tags: any(t.startswith(prefix) for t in tags))
        removed = self._store.invalidate_tag_prefix(prefix)
        _log.info("cache_invalidate_tag_prefix", prefix=prefix, removed=removed)
        return removed

    def apply(self, plan: InvalidationPlan) -> list[CacheInvalidationEvent]:
        events = [
            CacheInvalidationEvent(target=tag, keys_removed=self.invalidate_by_tag(tag), kind="tag")
            for tag in sorted(plan.tags)
        ]
        events.extend(
            CacheInvalidationEvent(
                target=pattern, keys_removed=self.invalidate_by_pattern(pattern), kind="pattern"
            )
            for pattern in sorted(plan.patterns)
        )
        events.extend(
            CacheInvalidationEvent(
                target=prefix, keys_removed=self.invalidate_by_tag_prefix(prefix), kind="tag_prefix"
            )
            for prefix in sorted(plan.tag_prefixes)
        )
        return events

    def invalidate_for_write(
        self, resource_path: str, context: Mapping[str, Any] | None = None
    ) -> int:
        """Purge everything the router declares stale for a write to *resource_path*."""
        plan = self._router.route(resource_path, context)
        if plan.is_empty:
            _log.debug("cache_write_no_invalidation", resource=resource_path)
            return 0
        return sum(event.keys_removed for event in self.apply(plan))

    # ------------------------------------------------------------------
    # Policy-driven request path
    # ------------------------------------------------------------------

    async def read(
        self,
        resource_path: str,
        producer: Producer[T],
        *,
        query_params: QueryParams | None = None,
        body: Any = None,
        context: Mapping[str, Any] | None = None,
    ) -> T:
        """Serve a read according to the policy table.

        Tag templates are rendered from *context* merged over *query_params*.
        A read whose tags cannot be rendered is served uncached.

        *context* only feeds the tag templates. Anything that changes the
        response (tenant, filters, paging) must be in *query_params* or
        *body* so that it is part of the fingerprint.
        """
        policy = self._policies.lookup(resource_path)
        if not policy.cacheable:
            return await _call(producer)

        render_ctx: dict[str, Any] = {}
        if isinstance(query_params, Mapping):
            render_ctx.update(query_params)
        render_ctx.update(context or {})
        try:
            tags = policy.render_tags(render_ctx)
        except KeyError as exc:
            _log.warning(
                "cache_tag_context_missing",
                resource=resource_path,
                policy=policy.resource_prefix,
                missing=str(exc),
            )
            return await _call(producer)

        key = build_key(resource_path, query_params, body)
        return await self.fetch_or_join(key, producer, policy.ttl_ms, tags)

    async def write(
        self,
        resource_path: str,
        mutation: Callable[[], Awaitable[T] | T],
        *,
        context: Mapping[str, Any] | None = None,
    ) -> T:
        """Run *mutation* with the declared purge on both sides of it.

        The second purge drops anything a concurrent read cached while the
        mutation was running. If the mutation raises, the error propagates
        and the second purge is skipped.
        """
        before = self.invalidate_for_write(resource_path, context)
        result = await _call(mutation)
        after = self.invalidate_for_write(resource_path, context)
        _log.info("cache_write", resource=resource_path, removed=before + after)
        return result

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def get_stats(self) -> CacheStats:
        now = self._store.clock.now()
        entries = [
            EntryInfo(
                key=e.key,
                tags=tuple(sorted(e.tags)),
                expires_at=e.expires_at,
                age_ms=now - e.stored_at,
                ttl_remaining_ms=max(0.0, e.expires_at - now),
            )
            for e in self._store.entries()
        ]
        return CacheStats(
            size=len(entries),
            tag_count=self._store.tag_count(),
            hits=self._hits,
            misses=self._misses,
            coalesced=self._coordinator.coalesced,
            evictions=self._store.evictions,
            in_flight=self._coordinator.in_flight,
            entries=entries,
        )

    def __len__(self) -> int:
        return len(self._store)


async def _call(fn: Callable[[], Awaitable[T] | T]) -> T:
    result = fn()
    if inspect.isawaitable(result):
        return await result
    return result
