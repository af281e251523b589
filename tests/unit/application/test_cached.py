"""Unit tests for the @cached decorator."""

from __future__ import annotations

import asyncio

from tagcache.application.cache import ReadThroughCache, cached


class TestCachedDecorator:
    def test_result_cached_second_call(self, read_through_cache: ReadThroughCache) -> None:
        calls: list[int] = []

        @cached(read_through_cache, ttl_ms=60_000, key_fn=lambda x: f"fn:{x}", tags=["grp"])
        async def compute(x: int) -> int:
            calls.append(x)
            return x * 2

        async def scenario() -> tuple[int, int]:
            return await compute(5), await compute(5)

        assert asyncio.run(scenario()) == (10, 10)
        assert len(calls) == 1
        assert read_through_cache.get("fn:5") == 10

    def test_default_key_separates_arguments(self, read_through_cache: ReadThroughCache) -> None:
        calls: list[int] = []

        @cached(read_through_cache, ttl_ms=60_000)
        async def compute(x: int, *, scale: int = 1) -> int:
            calls.append(x)
            return x * scale

        async def scenario() -> list[int]:
            return [await compute(1), await compute(2), await compute(1, scale=3), await compute(1)]

        assert asyncio.run(scenario()) == [1, 2, 3, 1]
        assert len(calls) == 3

    def test_callable_tags_allow_invalidation(self, read_through_cache: ReadThroughCache) -> None:
        calls: list[str] = []

        @cached(read_through_cache, ttl_ms=60_000, tags=lambda couple_id: [f"guests:{couple_id}"])
        async def guest_count(couple_id: str) -> int:
            calls.append(couple_id)
            return len(calls)

        async def scenario() -> list[int]:
            first = await guest_count("c1")
            read_through_cache.invalidate_by_tag("guests:c1")
            second = await guest_count("c1")
            return [first, second]

        assert asyncio.run(scenario()) == [1, 2]

    def test_concurrent_calls_share_one_execution(self, read_through_cache: ReadThroughCache) -> None:
        calls: list[int] = []

        @cached(read_through_cache, ttl_ms=60_000)
        async def slow() -> str:
            calls.append(1)
            await asyncio.sleep(0.01)
            return "done"

        async def scenario() -> list[str]:
            return await asyncio.gather(*(slow() for _ in range(5)))

        assert asyncio.run(scenario()) == ["done"] * 5
        assert len(calls) == 1
