"""Config – load the static policy and invalidation tables."""
from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from tagcache.application.cache.invalidation import InvalidationRouter
from tagcache.application.cache.policy import PolicyTable
from tagcache.config.validation import ConfigError
from tagcache.kernel.errors import CacheError

__all__ = ["CacheTables", "load_tables", "load_tables_file"]


@dataclass(frozen=True)
class CacheTables:
    """Read-only tables loaded once at startup."""

    policies: PolicyTable
    router: InvalidationRouter


def load_tables(document: Mapping[str, Any]) -> CacheTables:
    """Parse ``{"policies": [...], "invalidations": [...]}``.

    Example::

        {
          "policies": [
            {"resource": "/api/guests", "ttl": "MEDIUM", "tags": ["guests:{couple_id}"]},
            {"resource": "/api/dashboard", "ttl": 120000, "tags": ["dashboard:{couple_id}"]},
            {"resource": "/api/auth", "cacheable": false}
          ],
          "invalidations": [
            {"resource": "/api/guests", "tags": ["guests:{couple_id}"], "patterns": ["/api/dashboard"]}
          ]
        }
    """
    if not isinstance(document, Mapping):
        raise ConfigError("Cache tables document must be a JSON object")
    unknown = set(document) - {"policies", "invalidations"}
    if unknown:
        raise ConfigError(f"Unknown cache table sections: {sorted(unknown)}")
    return CacheTables(
        policies=PolicyTable.from_mapping(document.get("policies", [])),
        router=InvalidationRouter.from_mapping(document.get("invalidations", [])),
    )


def load_tables_file(path: str | Path) -> CacheTables:
    """Load :func:`load_tables` input from a JSON file."""
    try:
        document = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise ConfigError(f"Cannot read cache tables from '{path}': {exc}", cause=exc) from exc
    try:
        return load_tables(document)
    except CacheError as exc:
        raise ConfigError(f"Invalid cache tables in '{path}': {exc.message}", cause=exc) from exc
