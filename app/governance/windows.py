# app/governance/windows.py
"""
Fixed-window counters.

A key is either Absent or Active(count, reset_at). On each hit at time t:

- Absent, or Active with reset_at <= t  -> Active(1, t + window), allow
- Active with count < cap               -> Active(count + 1, reset_at), allow
- Active with count >= cap              -> unchanged, deny until reset_at

An expired Active entry is equivalent to Absent; it is replaced, never
incremented.
"""
from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple, Union


@dataclass(frozen=True)
class Absent:
    pass


@dataclass(frozen=True)
class Active:
    count: int
    reset_at: float


ABSENT = Absent()
WindowState = Union[Absent, Active]


@dataclass(frozen=True)
class WindowDecision:
    allowed: bool
    count: int
    limit: int
    reset_at: float
    retry_after: int = 0
    warning: bool = False

    @property
    def remaining(self) -> int:
        return max(0, self.limit - self.count)


def is_expired(state: WindowState, now: float) -> bool:
    return isinstance(state, Absent) or state.reset_at <= now


def step_window(state: WindowState, now: float, cap: int, window: float) -> Tuple[Active, WindowDecision]:
    if is_expired(state, now):
        fresh = Active(count=1, reset_at=now + window)
        return fresh, WindowDecision(True, fresh.count, cap, fresh.reset_at)

    if state.count < cap:
        bumped = Active(count=state.count + 1, reset_at=state.reset_at)
        return bumped, WindowDecision(True, bumped.count, cap, bumped.reset_at)

    retry_after = max(1, math.ceil(state.reset_at - now))
    return state, WindowDecision(False, state.count, cap, state.reset_at, retry_after=retry_after)


class WindowStore:
    """Lock-guarded map of key -> Active. Absence of a key is the Absent state."""

    def __init__(self, clock: Callable[[], float] = time.time):
        self.clock = clock
        self._entries: Dict[str, Active] = {}
        self._lock = threading.Lock()

    def hit(self, key: str, cap: int, window: float) -> WindowDecision:
        # read-check-increment is one critical section
        with self._lock:
            state = self._entries.get(key, ABSENT)
            new_state, decision = step_window(state, self.clock(), cap, window)
            self._entries[key] = new_state
        return decision

    def get(self, key: str) -> WindowState:
        with self._lock:
            state = self._entries.get(key, ABSENT)
            return ABSENT if is_expired(state, self.clock()) else state

    def evict_expired(self) -> Optional[int]:
        """
        Drop expired entries. Returns the number removed, or None when the
        store is busy and the sweep was skipped.
        """
        if not self._lock.acquire(blocking=False):
            return None
        try:
            now = self.clock()
            expired = [k for k, e in self._entries.items() if e.reset_at <= now]
            for k in expired:
                del self._entries[k]
            return len(expired)
        finally:
            self._lock.release()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
