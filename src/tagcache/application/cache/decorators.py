"""Application cache – @cached decorator."""
from __future__ import annotations

import functools
from collections.abc import Iterable
from typing import Any, Awaitable, Callable, TypeVar

from tagcache.application.cache.cache import ReadThroughCache
from tagcache.application.cache.keys import build_key

__all__ = ["cached", "default_call_key"]

T = TypeVar("T")


def default_call_key(fn: Callable[..., Any], *args: Any, **kwargs: Any) -> str:
    """Key a call by the function's qualified name and the ``repr`` of its arguments."""
    body = {
        "args": [repr(a) for a in args],
        "kwargs": {k: repr(v) for k, v in kwargs.items()},
    }
    return build_key(f"fn:{fn.__module__}.{fn.__qualname__}", body=body)


def cached(
    cache: ReadThroughCache,
    ttl_ms: float,
    key_fn: Callable[..., str] | None = None,
    tags: Iterable[str] | Callable[..., Iterable[str]] = (),
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """Decorator: serve an async function through ``cache.fetch_or_join``.

    *key_fn* and a callable *tags* receive the same args/kwargs as the wrapped
    function. Concurrent identical calls share one execution.
    """

    def decorator(fn: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(fn)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            key = key_fn(*args, **kwargs) if key_fn else default_call_key(fn, *args, **kwargs)
            call_tags = tags(*args, **kwargs) if callable(tags) else tags
            return await cache.fetch_or_join(
                key, lambda: fn(*args, **kwargs), ttl_ms, call_tags
            )

        wrapper._cache = cache  # type: ignore[attr-defined]
        return wrapper

    return decorator
