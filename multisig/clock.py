from __future__ import annotations

"""
Logical clocks used for proposal timestamps and expiry.

The engine only ever calls `now()`. Hosts that run on a ledger supply the
ledger's own time; tests and the CLI use `ManualClock`.
"""

import threading
import time
from typing import Protocol, runtime_checkable


@runtime_checkable
class Clock(Protocol):
    def now(self) -> int: ...


class ManualClock:
    """A monotonic clock that only moves when told to."""

    def __init__(self, start: int = 0) -> None:
        if start < 0:
            raise ValueError("clock start must be >= 0")
        self._now = int(start)
        self._lock = threading.Lock()

    def now(self) -> int:
        with self._lock:
            return self._now

    def set(self, t: int) -> None:
        with self._lock:
            if t < self._now:
                raise ValueError(f"clock cannot go backwards ({t} < {self._now})")
            self._now = int(t)

    def advance(self, dt: int = 1) -> int:
        if dt < 0:
            raise ValueError("advance requires dt >= 0")
        with self._lock:
            self._now += int(dt)
            return self._now

    def __repr__(self) -> str:
        return f"ManualClock(now={self._now})"


class SystemClock:
    """UNIX seconds, never going backwards even if wall time does."""

    def __init__(self) -> None:
        self._last = 0
        self._lock = threading.Lock()

    def now(self) -> int:
        with self._lock:
            self._last = max(self._last, int(time.time()))
            return self._last


__all__ = ["Clock", "ManualClock", "SystemClock"]
