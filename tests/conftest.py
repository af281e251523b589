"""Shared fixtures for the tagcache test suite."""
from tagcache.testing.fixtures import manual_clock, read_through_cache  # noqa: F401
