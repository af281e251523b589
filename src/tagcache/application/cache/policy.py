"""Application cache – TTL classes, PolicyEntry and PolicyTable."""
from __future__ import annotations

import enum
import string
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from tagcache.kernel.errors import PolicyConfigError

__all__ = [
    "NOT_CACHEABLE",
    "PolicyEntry",
    "PolicyTable",
    "TtlClass",
    "literal_prefix",
    "prefix_matches",
    "render_templates",
    "template_fields",
]


class TtlClass(enum.IntEnum):
    """Named TTLs in milliseconds."""

    SHORT = 60_000
    DASHBOARD = 120_000
    MEDIUM = 300_000
    LONG = 1_800_000


@dataclass(frozen=True)
class PolicyEntry:
    """Static caching policy for every resource under ``resource_prefix``.

    ``default_tags`` are ``str.format`` templates rendered against the read's
    context, e.g. ``"guests:{couple_id}"``.
    """

    resource_prefix: str
    ttl_ms: int = 0
    default_tags: tuple[str, ...] = field(default_factory=tuple)
    cacheable: bool = True

    def __post_init__(self) -> None:
        if self.cacheable and self.ttl_ms <= 0:
            raise PolicyConfigError(
                f"Cacheable policy '{self.resource_prefix}' needs a positive ttl_ms",
                resource_prefix=self.resource_prefix,
            )
        for template in self.default_tags:
            try:
                template_fields(template)
            except ValueError as exc:
                raise PolicyConfigError(
                    f"Invalid tag template {template!r}: {exc}",
                    resource_prefix=self.resource_prefix,
                    cause=exc,
                ) from exc

    def render_tags(self, context: Mapping[str, Any] | None = None) -> frozenset[str]:
        """Render ``default_tags``; raises ``KeyError`` for a missing variable."""
        return render_templates(self.default_tags, context)


NOT_CACHEABLE = PolicyEntry(resource_prefix="", cacheable=False)


def template_fields(template: str) -> list[str]:
    """Return the replacement field names used by *template*.

    Only plain ``{name}`` fields are allowed, so rendering against a mapping
    can fail with nothing but ``KeyError``. Positional, attribute, index,
    conversion and format-spec fields raise ``ValueError``.
    """
    names: list[str] = []
    for _, name, spec, conversion in string.Formatter().parse(template):
        if name is None:
            continue
        if not name.isidentifier() or spec or conversion:
            raise ValueError(f"field {{{name}}} must be a plain {{name}} reference")
        names.append(name)
    return names


def literal_prefix(template: str) -> str:
    """Return the text of *template* before its first replacement field."""
    prefix: list[str] = []
    for literal, name, _, _ in string.Formatter().parse(template):
        prefix.append(literal)
        if name is not None:
            break
    return "".join(prefix)


def render_templates(
    templates: Iterable[str], context: Mapping[str, Any] | None = None
) -> frozenset[str]:
    ctx = dict(context or {})
    return frozenset(template.format_map(ctx) for template in templates)


def prefix_matches(prefix: str, path: str) -> bool:
    """Segment-aware prefix test: ``/guests`` matches ``/guests/1`` but not ``/guestsx``."""
    if path == prefix:
        return True
    return path.startswith(prefix if prefix.endswith("/") else prefix + "/")


def _parse_ttl(raw: Any, prefix: str) -> int:
    if isinstance(raw, str):
        try:
            return int(TtlClass[raw.upper()])
        except KeyError:
            raise PolicyConfigError(
                f"Unknown TTL class {raw!r}; expected one of {[c.name for c in TtlClass]}",
                resource_prefix=prefix,
            ) from None
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        raise PolicyConfigError(f"Invalid ttl {raw!r}", resource_prefix=prefix)
    return int(raw)


class PolicyTable:
    """Longest-prefix lookup of :class:`PolicyEntry` by resource path.

    Resources without a matching entry are not cacheable.
    """

    def __init__(self, entries: Iterable[PolicyEntry] = ()) -> None:
        table: dict[str, PolicyEntry] = {}
        for entry in entries:
            if entry.resource_prefix in table:
                raise PolicyConfigError(
                    f"Duplicate policy for '{entry.resource_prefix}'",
                    resource_prefix=entry.resource_prefix,
                )
            table[entry.resource_prefix] = entry
        # longest prefix first
        self._entries = sorted(table.values(), key=lambda e: len(e.resource_prefix), reverse=True)

    @classmethod
    def from_mapping(cls, items: Iterable[Mapping[str, Any]]) -> PolicyTable:
        """Build a table from plain dicts (as loaded from JSON).

        Each item needs ``resource`` and, unless ``cacheable`` is false, a
        ``ttl`` given in milliseconds or as a :class:`TtlClass` name.
        """
        entries: list[PolicyEntry] = []
        for item in items:
            if not isinstance(item, Mapping) or "resource" not in item:
                raise PolicyConfigError(f"Policy item needs a 'resource' key: {item!r}")
            prefix = str(item["resource"])
            cacheable = bool(item.get("cacheable", True))
            tags = item.get("tags", ())
            if isinstance(tags, str) or not isinstance(tags, Iterable):
                raise PolicyConfigError("'tags' must be a list", resource_prefix=prefix)
            entries.append(
                PolicyEntry(
                    resource_prefix=prefix,
                    ttl_ms=_parse_ttl(item.get("ttl", 0), prefix),
                    default_tags=tuple(str(t) for t in tags),
                    cacheable=cacheable,
                )
            )
        return cls(entries)

    def lookup(self, resource_path: str) -> PolicyEntry:
        path = resource_path.split("?", 1)[0]
        for entry in self._entries:
            if prefix_matches(entry.resource_prefix, path):
                return entry
        return NOT_CACHEABLE

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(self._entries)
