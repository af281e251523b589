"""Testing fixtures – pytest fixtures for the cache.

Enable with ``pytest_plugins = ["tagcache.testing.fixtures"]`` in a conftest.
"""
from tagcache.testing.fixtures.cache import manual_clock, read_through_cache

__all__ = ["manual_clock", "read_through_cache"]
