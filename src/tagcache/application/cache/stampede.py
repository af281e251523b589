"""Application cache – StampedeCoordinator (one in-flight fetch per key)."""
from __future__ import annotations

import asyncio
import inspect
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, TypeVar

from tagcache.observability.logging import get_logger

__all__ = ["Producer", "StampedeCoordinator"]

_log = get_logger(__name__)

T = TypeVar("T")

Producer = Callable[[], Awaitable[T] | T]


@dataclass
class _Flight:
    future: asyncio.Future[Any]
    tags: frozenset[str]
    overtaken: bool = False


class StampedeCoordinator:
    """Collapse concurrent fetches of the same key into a single producer call.

    The first caller for a key becomes the leader and runs the producer; every
    caller that arrives while it is running awaits the leader's future and gets
    the same value or the same exception. The future leaves the in-flight map
    before it is resolved, so a caller arriving afterwards starts a fresh fetch
    rather than replaying a failure.

    An invalidation that hits a running fetch (by key, by one of the tags the
    result will carry, or by a key predicate) detaches it: later callers start
    over, and the detached leader's result is handed to its own waiters but
    not stored. Fetches the invalidation does not hit are left alone.

    Bound to the event loop it is first used on.
    """

    def __init__(self) -> None:
        self._in_flight: dict[str, _Flight] = {}
        self.coalesced = 0

    @property
    def in_flight(self) -> int:
        return len(self._in_flight)

    def is_in_flight(self, key: str) -> bool:
        return key in self._in_flight

    async def fetch_or_join(
        self,
        key: str,
        producer: Producer[T],
        *,
        tags: Iterable[str] = (),
        store_result: Callable[[T], object] | None = None,
    ) -> T:
        # lookup and registration must not be separated by an await
        pending = self._in_flight.get(key)
        if pending is not None:
            self.coalesced += 1
            _log.debug("cache_fetch_joined", key=key)
            return await asyncio.shield(pending.future)

        flight = _Flight(asyncio.get_running_loop().create_future(), frozenset(tags))
        self._in_flight[key] = flight
        try:
            value = producer()
            if inspect.isawaitable(value):
                value = await value
        except Exception as exc:
            self._release(key, flight)
            flight.future.set_exception(exc)
            # the leader re-raises; waiters (if any) read it from the future
            flight.future.exception()
            _log.warning("cache_fetch_failed", key=key, error=repr(exc))
            raise
        except BaseException:
            # cancellation of the leader reaches every waiter as cancellation
            self._release(key, flight)
            flight.future.cancel()
            raise

        if flight.overtaken:
            _log.debug("cache_fetch_overtaken", key=key)
        elif store_result is not None:
            try:
                store_result(value)
            except Exception:  # noqa: BLE001
                _log.exception("cache_store_failed", key=key)
        self._release(key, flight)
        flight.future.set_result(value)
        return value

    def detach(self, key: str) -> bool:
        """Detach the fetch running for *key*, if any."""
        return self.detach_where(lambda k, _tags: k == key) > 0

    def detach_tag(self, tag: str) -> int:
        """Detach every running fetch whose result will carry *tag*."""
        return self.detach_where(lambda _key, tags: tag in tags)

    def detach_where(self, hit: Callable[[str, frozenset[str]], bool]) -> int:
        """Detach every running fetch for which ``hit(key, tags)`` is true.

        Existing waiters still receive their leader's outcome; the next caller
        for a detached key starts a fresh fetch.
        """
        keys = [key for key, flight in self._in_flight.items() if hit(key, flight.tags)]
        for key in keys:
            self._in_flight.pop(key).overtaken = True
        return len(keys)

    def detach_all(self) -> int:
        return self.detach_where(lambda _key, _tags: True)

    def _release(self, key: str, flight: _Flight) -> None:
        # a detached leader must not unregister its successor
        if self._in_flight.get(key) is flight:
            del self._in_flight[key]
