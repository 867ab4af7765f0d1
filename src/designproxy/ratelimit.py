"""Per-client request throttling.

The dispatcher only depends on `allow(key) -> bool`. The in-process
implementation keeps a sliding window of timestamps per key; swap in a
shared-store implementation when running more than one process.
"""
from __future__ import annotations

import threading
import time
from collections import deque
from typing import Callable, Deque, Dict

class RateLimiter:
    def allow(self, key: str) -> bool:
        raise NotImplementedError

class NullRateLimiter(RateLimiter):
    def allow(self, key: str) -> bool:
        return True

class SlidingWindowRateLimiter(RateLimiter):
    def __init__(self, max_requests: int, window_seconds: float, clock: Callable[[], float] = time.monotonic):
        if max_requests <= 0 or window_seconds <= 0:
            raise ValueError("max_requests and window_seconds must be positive")
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._hits: Dict[str, Deque[float]] = {}
        self._lock = threading.Lock()
        self._last_sweep = clock()

    def allow(self, key: str) -> bool:
        with self._lock:
            now = self._clock()
            cutoff = now - self.window_seconds
            if now - self._last_sweep >= self.window_seconds:
                self._evict_idle(cutoff)
                self._last_sweep = now

            q = self._hits.setdefault(key, deque(maxlen=self.max_requests))
            while q and q[0] <= cutoff:
                q.popleft()
            if len(q) >= self.max_requests:
                return False
            q.append(now)
            return True

    def _evict_idle(self, cutoff: float):
        # Runs at most once per window; keys whose newest hit is outside it are dropped.
        idle = [k for k, q in self._hits.items() if not q or q[-1] <= cutoff]
        for k in idle:
            del self._hits[k]

    def tracked_keys(self) -> int:
        with self._lock:
            return len(self._hits)
