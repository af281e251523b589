"""Kernel time – monotonic Clock protocol + implementations.

All cache timestamps are milliseconds on the injected clock. They are only
comparable to each other, never to wall-clock time.
"""
from __future__ import annotations

import time
from datetime import timedelta
from typing import Protocol


class Clock(Protocol):
    """Port: monotonic millisecond clock for deterministic testing."""

    def now(self) -> float: ...


class MonotonicClock:
    """Production clock backed by ``time.monotonic``."""

    def now(self) -> float:
        return time.monotonic() * 1000.0


class ManualClock:
    """Test clock that only moves when told to."""

    def __init__(self, start: float = 0.0) -> None:
        self._now = float(start)

    def now(self) -> float:
        return self._now

    def advance(self, **kwargs: int | float) -> None:
        """Advance the clock by the given ``timedelta`` kwargs."""
        self._now += timedelta(**kwargs) / timedelta(milliseconds=1)


__all__ = ["Clock", "ManualClock", "MonotonicClock"]
