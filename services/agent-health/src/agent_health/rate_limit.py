"""
Fixed-window rate limiting for the ingestion endpoint.

Each key (typically ``health-report:<client ip>``) may make ``max_requests``
calls per window. State lives in memory and is lost on restart.
"""

from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass


@dataclass
class RateLimitResult:
    ok: bool
    remaining: int
    retry_after_seconds: int = 0


@dataclass
class _Window:
    started_at: float
    count: int


class FixedWindowRateLimiter:
    """Counts calls per key in fixed windows. Thread-safe."""

    def __init__(self, window_seconds: float = 60.0, max_requests: int = 120) -> None:
        if window_seconds <= 0 or max_requests <= 0:
            raise ValueError("window_seconds and max_requests must be positive")
        self.window_seconds = window_seconds
        self.max_requests = max_requests
        self._windows: dict[str, _Window] = {}
        self._lock = threading.Lock()

    def check(self, key: str, now: float | None = None) -> RateLimitResult:
        """Count one call for ``key`` and report whether it is allowed."""
        now = time.monotonic() if now is None else now
        with self._lock:
            self._evict_expired(now)
            window = self._windows.get(key)
            if window is None:
                window = _Window(started_at=now, count=0)
                self._windows[key] = window

            if window.count >= self.max_requests:
                retry_after = window.started_at + self.window_seconds - now
                return RateLimitResult(
                    ok=False,
                    remaining=0,
                    retry_after_seconds=max(1, math.ceil(retry_after)),
                )

            window.count += 1
            return RateLimitResult(ok=True, remaining=self.max_requests - window.count)

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()

    def _evict_expired(self, now: float) -> None:
        expired = [
            key
            for key, window in self._windows.items()
            if now - window.started_at >= self.window_seconds
        ]
        for key in expired:
            del self._windows[key]
