"""Hybrid logical clock used to order change events across nodes.

An ``HLC`` packs wall-clock milliseconds into the upper bits and a 16-bit
logical counter into the lower bits, so plain integer comparison orders
events causally.
"""
from __future__ import annotations

import threading
import time
from datetime import datetime, UTC

LOGICAL_BITS = 16
LOGICAL_MASK = (1 << LOGICAL_BITS) - 1


class HLC(int):
    """Packed hybrid logical clock value."""

    @classmethod
    def pack(cls, physical_ms: int, logical: int) -> "HLC":
        return cls((physical_ms << LOGICAL_BITS) | (logical & LOGICAL_MASK))

    def physical_ms(self) -> int:
        return int(self) >> LOGICAL_BITS

    def physical(self) -> datetime:
        return datetime.fromtimestamp(self.physical_ms() / 1000, UTC)

    def logical(self) -> int:
        return int(self) & LOGICAL_MASK

    def before(self, other: int) -> bool:
        return int(self) < int(other)

    def after(self, other: int) -> bool:
        return int(self) > int(other)

    def __str__(self) -> str:
        return f"HLC({self.physical_ms()}:{self.logical()})"

    __repr__ = __str__


def _wall_ms() -> int:
    return time.time_ns() // 1_000_000


class HybridLogicalClock:
    """Thread-safe, strictly monotonic HLC source."""

    def __init__(self, wall_clock=_wall_ms) -> None:
        self._wall_clock = wall_clock
        self._lock = threading.Lock()
        self._physical = 0
        self._logical = 0

    def _advance(self, physical: int, logical: int) -> HLC:
        if logical > LOGICAL_MASK:
            # Counter exhausted within one millisecond: borrow the next one.
            physical += 1
            logical = 0
        self._physical = physical
        self._logical = logical
        return HLC.pack(physical, logical)

    def now(self) -> HLC:
        with self._lock:
            wall = self._wall_clock()
            if wall > self._physical:
                return self._advance(wall, 0)
            return self._advance(self._physical, self._logical + 1)

    def update(self, received: int) -> HLC:
        """Merge a timestamp received from another node and tick past it."""
        remote = HLC(received)
        with self._lock:
            wall = self._wall_clock()
            remote_physical = remote.physical_ms()
            physical = max(wall, self._physical, remote_physical)
            if physical == self._physical and physical == remote_physical:
                logical = max(self._logical, remote.logical()) + 1
            elif physical == self._physical:
                logical = self._logical + 1
            elif physical == remote_physical:
                logical = remote.logical() + 1
            else:
                logical = 0
            return self._advance(physical, logical)


_CLOCK = HybridLogicalClock()


def hlc_now() -> HLC:
    """Return the next timestamp from the process-wide clock."""
    return _CLOCK.now()


def hlc_update(received: int) -> HLC:
    """Advance the process-wide clock past ``received``."""
    return _CLOCK.update(received)
