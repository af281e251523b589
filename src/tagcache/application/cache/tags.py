"""Application cache – TagIndex and the CacheTags vocabulary."""
from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

__all__ = [
    "CacheInvalidationEvent",
    "CacheTags",
    "TagIndex",
]


@dataclass(frozen=True)
class CacheInvalidationEvent:
    """Outcome of one tag or pattern purge."""
    target: str
    keys_removed: int = 0
    kind: str = "tag"


class TagIndex:
    """Secondary index ``tag -> {keys}``.

    Not thread-safe on its own; the entry store mutates it under its lock.
    A bucket is dropped as soon as its last key leaves it.
    """

    def __init__(self) -> None:
        self._buckets: dict[str, set[str]] = {}

    def add(self, key: str, tags: Iterable[str]) -> None:
        for tag in tags:
            self._buckets.setdefault(tag, set()).add(key)

    def discard(self, key: str, tags: Iterable[str]) -> None:
        for tag in tags:
            bucket = self._buckets.get(tag)
            if bucket is None:
                continue
            bucket.discard(key)
            if not bucket:
                del self._buckets[tag]

    def keys_for(self, tag: str) -> frozenset[str]:
        return frozenset(self._buckets.get(tag, ()))

    def pop(self, tag: str) -> set[str]:
        return self._buckets.pop(tag, set())

    def tags(self) -> list[str]:
        return list(self._buckets)

    def clear(self) -> None:
        self._buckets.clear()

    def __len__(self) -> int:
        return len(self._buckets)

    def __contains__(self, tag: object) -> bool:
        return tag in self._buckets


class CacheTags:
    """Tag names for the entities whose changes make cached reads stale.

    ``couple_scope`` and ``user_scope`` return every tag a change to that
    aggregate can affect.
    """

    @staticmethod
    def couple(couple_id: str) -> str:
        return f"couple:{couple_id}"

    @staticmethod
    def user(user_id: str) -> str:
        return f"user:{user_id}"

    @staticmethod
    def guests(couple_id: str) -> str:
        return f"guests:{couple_id}"

    @staticmethod
    def budget(couple_id: str) -> str:
        return f"budget:{couple_id}"

    @staticmethod
    def vendors(couple_id: str) -> str:
        return f"vendors:{couple_id}"

    @staticmethod
    def photos(couple_id: str) -> str:
        return f"photos:{couple_id}"

    @staticmethod
    def checklist(couple_id: str) -> str:
        return f"checklist:{couple_id}"

    @staticmethod
    def messages(couple_id: str) -> str:
        return f"messages:{couple_id}"

    @staticmethod
    def dashboard(couple_id: str) -> str:
        return f"dashboard:{couple_id}"

    @staticmethod
    def settings(user_id: str) -> str:
        return f"settings:{user_id}"

    @staticmethod
    def notifications(user_id: str) -> str:
        return f"notifications:{user_id}"

    @classmethod
    def couple_scope(cls, couple_id: str) -> frozenset[str]:
        return frozenset(
            {
                cls.couple(couple_id),
                cls.guests(couple_id),
                cls.budget(couple_id),
                cls.vendors(couple_id),
                cls.photos(couple_id),
                cls.checklist(couple_id),
                cls.messages(couple_id),
            }
        )

    @classmethod
    def user_scope(cls, user_id: str) -> frozenset[str]:
        return frozenset({cls.user(user_id), cls.settings(user_id)})
