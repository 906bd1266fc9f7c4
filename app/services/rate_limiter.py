# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Sliding-window rate limiter keyed by client IP."""
import threading
import time


class SlidingWindowRateLimiter:
    def __init__(self, max_requests: int, window_seconds: int = 900, clock=time.monotonic):
        self.max_requests = max_requests
        self.window = window_seconds
        self._clock = clock
        self._hits: dict[str, list[float]] = {}
        self._lock = threading.Lock()
        self._last_sweep = clock()

    def is_allowed(self, key: str) -> tuple[bool, int, int]:
        """Record a hit for ``key``; return (allowed, remaining, retry_after_seconds)."""
        now = self._clock()
        cutoff = now - self.window
        with self._lock:
            if now - self._last_sweep >= self.window:
                self._sweep(cutoff)
                self._last_sweep = now
            timestamps = [t for t in self._hits.get(key, ()) if t > cutoff]
            if len(timestamps) >= self.max_requests:
                self._hits[key] = timestamps
                retry_after = int(timestamps[0] - cutoff) + 1
                return False, 0, retry_after
            timestamps.append(now)
            self._hits[key] = timestamps
            return True, self.max_requests - len(timestamps), 0

    def _sweep(self, cutoff: float):
        # drop clients whose newest hit has left the window
        for key in [k for k, hits in self._hits.items() if not hits or hits[-1] <= cutoff]:
            del self._hits[key]

    def __len__(self) -> int:
        with self._lock:
            return len(self._hits)

    def reset(self):
        with self._lock:
            self._hits.clear()
