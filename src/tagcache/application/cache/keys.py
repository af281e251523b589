"""Application cache – fingerprint builder and CacheKey helpers.

A fingerprint has the shape ``<resource_path>?<sorted_query>[#<body_digest>]``.
Parameter order in the incoming request never affects the key, and two reads
that differ in any parameter or in their body produce different keys.
"""
from __future__ import annotations

import hashlib
import json
from collections.abc import Iterable, Mapping
from typing import Any
from urllib.parse import urlencode

from tagcache.observability.logging import get_logger

__all__ = ["CacheKey", "QueryParams", "body_digest", "build_key", "resource_path_of"]

_log = get_logger(__name__)

QueryParams = Mapping[str, Any] | Iterable[tuple[str, Any]]

_DIGEST_LENGTH = 16
# fallback bodies are prefixed with a type tag of exactly this width
_TYPE_TAG_WIDTH = 12


def _digest(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()[:_DIGEST_LENGTH]


def _structure(value: Any, depth: int = 0) -> Any:
    """Describe the shape of *value* without serialising its contents."""
    if depth > 8:
        return "..."
    if isinstance(value, Mapping):
        return {str(k): _structure(v, depth + 1) for k, v in sorted(value.items(), key=lambda kv: str(kv[0]))}
    if isinstance(value, (list, tuple)):
        return [type(value).__name__, len(value), [_structure(v, depth + 1) for v in value]]
    if isinstance(value, (set, frozenset)):
        return [type(value).__name__, len(value)]
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    return type(value).__qualname__


def _canonical_body(body: Any) -> bytes:
    if isinstance(body, bytes):
        return body
    if isinstance(body, str):
        return body.encode()
    try:
        return json.dumps(body, sort_keys=True, separators=(",", ":"), ensure_ascii=False).encode()
    except (TypeError, ValueError) as exc:
        type_tag = type(body).__name__[:_TYPE_TAG_WIDTH].ljust(_TYPE_TAG_WIDTH, "_")
        summary = json.dumps(_structure(body), sort_keys=True, default=repr)
        _log.debug("cache_key_body_fallback", body_type=type(body).__name__, error=str(exc))
        return f"!{type_tag}:{summary}".encode()


def body_digest(body: Any) -> str:
    """Return the fixed-length digest of *body*'s canonical serialisation."""
    return _digest(_canonical_body(body))


def _query_items(query_params: QueryParams | None) -> list[tuple[str, Any]]:
    if not query_params:
        return []
    items = query_params.items() if isinstance(query_params, Mapping) else query_params
    pairs: list[tuple[str, Any]] = []
    for name, value in items:
        if isinstance(value, (list, tuple)):
            pairs.extend((str(name), _scalar(v)) for v in value)
        elif value is not None:
            pairs.append((str(name), _scalar(value)))
    # stable: repeated parameters keep their relative order
    pairs.sort(key=lambda pair: pair[0])
    return pairs


def _scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def build_key(
    resource_path: str,
    query_params: QueryParams | None = None,
    body: Any = None,
) -> str:
    """Build the cache key for one logical read.

    Any query string or fragment left on *resource_path* is dropped; pass the
    parameters through *query_params* instead. ``None``-valued parameters are
    omitted, sequence values become repeated parameters.
    """
    path = resource_path.split("?", 1)[0].split("#", 1)[0]
    key = f"{path}?{urlencode(_query_items(query_params))}"
    if body is not None:
        key = f"{key}#{body_digest(body)}"
    return key


def resource_path_of(key: str) -> str:
    """Return the resource-path portion of a cache key."""
    return key.split("?", 1)[0].split("#", 1)[0]


class CacheKey:
    """Factory for named, deterministic cache keys outside the request path."""

    @staticmethod
    def for_resource(resource_type: str, resource_id: str | int) -> str:
        return f"{resource_type}:{resource_id}"

    @staticmethod
    def for_query(query_type: str, **kwargs: object) -> str:
        return build_key(f"query:{query_type}", kwargs)

    @staticmethod
    def for_request(
        resource_path: str,
        query_params: QueryParams | None = None,
        body: Any = None,
    ) -> str:
        return build_key(resource_path, query_params, body)
