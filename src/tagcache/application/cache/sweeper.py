"""Application cache – CacheSweeper background task."""
from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass

from tagcache.application.cache.cache import ReadThroughCache
from tagcache.observability.logging import get_logger

__all__ = ["CacheSweeper", "SweepResult"]

_log = get_logger(__name__)


@dataclass(frozen=True)
class SweepResult:
    """Outcome of one sweep pass."""

    removed: int
    duration_ms: float
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.error is None


class CacheSweeper:
    """Periodically reclaim expired entries that nobody reads again.

    Lazy expiry only evicts on lookup; keys written once and never read would
    otherwise stay in memory until a full clear.
    """

    def __init__(self, cache: ReadThroughCache, interval_seconds: float = 60.0) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._cache = cache
        self._interval = interval_seconds
        self._task: asyncio.Task[None] | None = None
        self.last_result: SweepResult | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def run_once(self) -> SweepResult:
        t0 = time.monotonic()
        removed = 0
        error: str | None = None
        try:
            removed = self._cache.sweep()
        except Exception as exc:  # noqa: BLE001
            error = str(exc)
            _log.exception("cache_sweep_failed")
        result = SweepResult(
            removed=removed,
            duration_ms=(time.monotonic() - t0) * 1000,
            error=error,
        )
        self.last_result = result
        return result

    async def start(self) -> None:
        if self.is_running:
            return
        self._task = asyncio.create_task(self._loop(), name="tagcache-sweeper")
        _log.info("cache_sweeper_started", interval_seconds=self._interval)

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        _log.info("cache_sweeper_stopped")

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            self.run_once()
