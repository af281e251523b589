"""Testing fakes – in-memory doubles for kernel ports."""
from tagcache.testing.fakes.clock import FakeClock
from tagcache.kernel.time import ManualClock

__all__ = ["FakeClock", "ManualClock"]
