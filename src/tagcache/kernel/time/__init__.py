"""Kernel time – Clock port + implementations."""
from tagcache.kernel.time.clock import Clock, ManualClock, MonotonicClock

__all__ = ["Clock", "ManualClock", "MonotonicClock"]
