"""
Clock
=====
Millisecond clocks injected into every time-dependent component.
"""

import threading
import time
from typing import Callable

Clock = Callable[[], int]


def system_clock() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


class ManualClock:
    """
    Deterministic clock that only moves when told to.

    Example:
        clock = ManualClock(start_ms=0)
        store = OTPStore(IPBlockRegistry(clock=clock), config=config, clock=clock)
        clock.advance(config.otp_ttl_ms + 1)
    """

    def __init__(self, start_ms: int = 1_700_000_000_000):
        self._now = start_ms
        self._lock = threading.Lock()

    def __call__(self) -> int:
        with self._lock:
            return self._now

    def advance(self, ms: int) -> int:
        """Move the clock forward and return the new time."""
        if ms < 0:
            raise ValueError("ManualClock cannot move backwards")
        with self._lock:
            self._now += ms
            return self._now

    def set(self, now_ms: int) -> None:
        with self._lock:
            self._now = now_ms
