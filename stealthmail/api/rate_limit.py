from __future__ import annotations

import math
import threading
import time
from collections import deque
from typing import Callable, Deque, Dict, Optional


class RateLimiter:
    """Sliding-window request counter keyed by client address.

    Idle keys are swept at most once per window, so the table only holds
    clients seen within the last window.
    """

    def __init__(self, max_requests: int, window_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.clock = clock
        self._hits: Dict[str, Deque[float]] = {}
        self._lock = threading.Lock()
        self._last_sweep = clock()

    def _expired(self, hits: Deque[float], now: float) -> bool:
        return not hits or now - hits[-1] >= self.window_seconds

    def _sweep(self, now: float) -> None:
        for key in [k for k, hits in self._hits.items() if self._expired(hits, now)]:
            del self._hits[key]
        self._last_sweep = now

    def hit(self, key: str) -> Optional[int]:
        """Record a request. Returns seconds until retry when over the limit, else None."""
        now = self.clock()
        with self._lock:
            if now - self._last_sweep >= self.window_seconds:
                self._sweep(now)

            hits = self._hits.setdefault(key, deque())
            while hits and now - hits[0] >= self.window_seconds:
                hits.popleft()
            if len(hits) >= self.max_requests:
                return max(1, math.ceil(self.window_seconds - (now - hits[0])))
            hits.append(now)
            return None

    def tracked_keys(self) -> int:
        with self._lock:
            return len(self._hits)

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()
