"""Application cache – CacheRuntime, the process-wide cache owner."""
from __future__ import annotations

from types import TracebackType

from tagcache.application.cache.cache import ReadThroughCache
from tagcache.application.cache.sweeper import CacheSweeper
from tagcache.config.settings import CacheSettings
from tagcache.config.tables import CacheTables, load_tables_file
from tagcache.kernel.time import Clock
from tagcache.observability.logging import get_logger

__all__ = ["CacheRuntime"]

_log = get_logger(__name__)


class CacheRuntime:
    """Own the one cache of a process between startup and shutdown.

    Usage::

        async with CacheRuntime.from_settings(settings) as cache:
            app.state.cache = cache
            ...

    Entering builds the cache and starts the sweeper (unless
    ``sweep_interval_seconds`` is 0); leaving stops the sweeper and clears
    the cache.
    """

    def __init__(
        self,
        settings: CacheSettings | None = None,
        tables: CacheTables | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._settings = settings or CacheSettings()
        self._tables = tables
        self._clock = clock
        self._cache: ReadThroughCache | None = None
        self._sweeper: CacheSweeper | None = None

    @classmethod
    def from_settings(cls, settings: CacheSettings, clock: Clock | None = None) -> CacheRuntime:
        """Build a runtime, loading tables from ``settings.policy_file`` when set."""
        tables = load_tables_file(settings.policy_file) if settings.policy_file else None
        return cls(settings, tables, clock)

    @property
    def cache(self) -> ReadThroughCache:
        if self._cache is None:
            raise RuntimeError("CacheRuntime has not been started")
        return self._cache

    @property
    def sweeper(self) -> CacheSweeper | None:
        return self._sweeper

    async def start(self) -> ReadThroughCache:
        if self._cache is not None:
            return self._cache
        self._cache = ReadThroughCache(
            clock=self._clock,
            policies=self._tables.policies if self._tables else None,
            router=self._tables.router if self._tables else None,
            enabled=self._settings.enabled,
        )
        if self._settings.sweep_interval_seconds > 0:
            self._sweeper = CacheSweeper(self._cache, self._settings.sweep_interval_seconds)
            await self._sweeper.start()
        _log.info(
            "cache_runtime_started",
            enabled=self._settings.enabled,
            policies=len(self._cache.policies),
            invalidations=len(self._cache.router),
        )
        return self._cache

    async def stop(self) -> None:
        if self._sweeper is not None:
            await self._sweeper.stop()
            self._sweeper = None
        if self._cache is not None:
            self._cache.clear()
            self._cache = None
        _log.info("cache_runtime_stopped")

    async def __aenter__(self) -> ReadThroughCache:
        return await self.start()

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.stop()
