from __future__ import annotations

import threading
import time
from collections import deque
from collections.abc import Callable
from typing import Protocol


class RateLimiter(Protocol):
    def hit(self, key: str) -> bool:
        """Record one request for `key`; False when it exceeds the limit."""
        ...


class SlidingWindowRateLimiter:
    """
    In-process sliding-log limiter keyed by client identity.

    `hit` never awaits, so the lock is only held for the bookkeeping itself.
    A shared store can replace this class behind the `RateLimiter` protocol.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        *,
        clock: Callable[[], float] | None = None,
    ):
        self.max_requests = int(max_requests)
        self.window_seconds = max(0.0, float(window_seconds))
        self._clock: Callable[[], float] = clock or time.monotonic
        self._hits: dict[str, deque[float]] = {}
        self._lock = threading.Lock()
        self._next_sweep = self._clock() + self.window_seconds

    @property
    def enabled(self) -> bool:
        return self.max_requests > 0 and self.window_seconds > 0

    def hit(self, key: str) -> bool:
        if not self.enabled:
            return True
        now = self._clock()
        cutoff = now - self.window_seconds
        with self._lock:
            if now >= self._next_sweep:
                self._sweep(cutoff)
                self._next_sweep = now + self.window_seconds
            window = self._hits.setdefault(key, deque())
            while window and window[0] <= cutoff:
                window.popleft()
            if len(window) >= self.max_requests:
                return False
            window.append(now)
            return True

    def _sweep(self, cutoff: float) -> None:
        idle = [k for k, window in self._hits.items() if not window or window[-1] <= cutoff]
        for k in idle:
            del self._hits[k]

    def tracked_keys(self) -> int:
        with self._lock:
            return len(self._hits)
