"""Application cache – declarative write-to-purge routing."""
from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from tagcache.application.cache.policy import literal_prefix, prefix_matches, template_fields
from tagcache.kernel.errors import InvalidationConfigError
from tagcache.observability.logging import get_logger

__all__ = ["InvalidationPlan", "InvalidationRouter", "InvalidationSpec"]

_log = get_logger(__name__)


@dataclass(frozen=True)
class InvalidationSpec:
    """What a write under ``resource_prefix`` makes stale.

    ``tags`` and ``patterns`` are ``str.format`` templates rendered against the
    write's context.
    """

    resource_prefix: str
    tags: tuple[str, ...] = field(default_factory=tuple)
    patterns: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if not self.tags and not self.patterns:
            raise InvalidationConfigError(
                f"Invalidation for '{self.resource_prefix}' names no tags or patterns",
                resource_prefix=self.resource_prefix,
            )
        for template in (*self.tags, *self.patterns):
            try:
                template_fields(template)
            except ValueError as exc:
                raise InvalidationConfigError(
                    f"Invalid template {template!r}: {exc}",
                    resource_prefix=self.resource_prefix,
                    cause=exc,
                ) from exc


@dataclass(frozen=True)
class InvalidationPlan:
    """Resolved purge for one write.

    ``tag_prefixes`` come from tag templates the write's context could not
    fill: every tag starting with the template's literal text is purged.
    """

    tags: frozenset[str] = frozenset()
    patterns: frozenset[str] = frozenset()
    tag_prefixes: frozenset[str] = frozenset()

    @property
    def is_empty(self) -> bool:
        return not self.tags and not self.patterns and not self.tag_prefixes


class InvalidationRouter:
    """Pure mapping from a mutated resource path to the tags/patterns to purge.

    Every entry whose prefix matches the path contributes, so a write to
    ``/guests/42`` picks up both the ``/guests`` and ``/guests/42`` entries.
    A template that needs a context variable the caller did not supply widens
    to its literal prefix: ``"dashboard:{couple_id}"`` purges every
    ``dashboard:`` tag, and a pattern template purges by its leading text.
    """

    def __init__(self, specs: Iterable[InvalidationSpec] = ()) -> None:
        self._specs = tuple(specs)

    @classmethod
    def from_mapping(cls, items: Iterable[Mapping[str, Any]]) -> InvalidationRouter:
        specs: list[InvalidationSpec] = []
        for item in items:
            if not isinstance(item, Mapping) or "resource" not in item:
                raise InvalidationConfigError(f"Invalidation item needs a 'resource' key: {item!r}")
            prefix = str(item["resource"])
            lists: dict[str, tuple[str, ...]] = {}
            for name in ("tags", "patterns"):
                raw = item.get(name, ())
                if isinstance(raw, str) or not isinstance(raw, Iterable):
                    raise InvalidationConfigError(f"'{name}' must be a list", resource_prefix=prefix)
                lists[name] = tuple(str(v) for v in raw)
            specs.append(InvalidationSpec(resource_prefix=prefix, **lists))
        return cls(specs)

    def route(self, resource_path: str, context: Mapping[str, Any] | None = None) -> InvalidationPlan:
        path = resource_path.split("?", 1)[0]
        ctx = dict(context or {})
        tags: set[str] = set()
        patterns: set[str] = set()
        tag_prefixes: set[str] = set()
        for spec in self._specs:
            if not prefix_matches(spec.resource_prefix, path):
                continue
            for template in spec.tags:
                try:
                    tags.add(template.format_map(ctx))
                except KeyError as exc:
                    self._widen(path, spec, template, exc)
                    tag_prefixes.add(literal_prefix(template))
            for template in spec.patterns:
                try:
                    patterns.add(template.format_map(ctx))
                except KeyError as exc:
                    self._widen(path, spec, template, exc)
                    patterns.add(literal_prefix(template))
        return InvalidationPlan(
            tags=frozenset(tags),
            patterns=frozenset(patterns),
            tag_prefixes=frozenset(tag_prefixes),
        )

    @staticmethod
    def _widen(path: str, spec: InvalidationSpec, template: str, exc: KeyError) -> None:
        _log.warning(
            "cache_invalidation_context_missing",
            resource=path,
            spec=spec.resource_prefix,
            template=template,
            missing=str(exc),
        )

    def __len__(self) -> int:
        return len(self._specs)
