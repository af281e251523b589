"""Testing – doubles and pytest fixtures for code that uses the cache."""
from tagcache.testing.fakes import FakeClock, ManualClock

__all__ = ["FakeClock", "ManualClock"]
