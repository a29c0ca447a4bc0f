"""Sliding-window per-client admission control."""

from __future__ import annotations

import math
import time
from dataclasses import dataclass
from threading import Lock
from typing import Callable, Dict, List, Optional


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of one admission check. retry_after_sec is 0 when allowed."""

    allowed: bool
    retry_after_sec: int = 0


class SlidingWindowRateLimiter:
    """Allow at most `max_requests` per client within any rolling `window_sec`."""

    def __init__(
        self,
        *,
        max_requests: int = 10,
        window_sec: float = 60.0,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        self.max_requests = max(1, int(max_requests))
        self.window_sec = float(window_sec)
        self._clock = clock or time.monotonic
        self._history: Dict[str, List[float]] = {}
        self._last_sweep: Optional[float] = None
        self._lock = Lock()

    def _sweep_idle(self, now: float, window_start: float) -> None:
        # At most once per window: drop clients whose newest request has left it.
        if self._last_sweep is not None and now - self._last_sweep < self.window_sec:
            return
        self._last_sweep = now
        idle = [key for key, stamps in self._history.items() if not stamps or stamps[-1] <= window_start]
        for key in idle:
            del self._history[key]

    def admit(self, client_key: str) -> RateLimitDecision:
        """Check-then-record under one lock; denied calls are not recorded."""
        key = str(client_key or "unknown")
        with self._lock:
            now = self._clock()
            window_start = now - self.window_sec
            self._sweep_idle(now, window_start)
            recent = [ts for ts in self._history.get(key, []) if ts > window_start]

            if len(recent) >= self.max_requests:
                self._history[key] = recent
                retry_after = math.ceil(recent[0] + self.window_sec - now)
                return RateLimitDecision(allowed=False, retry_after_sec=max(1, retry_after))

            recent.append(now)
            self._history[key] = recent
            return RateLimitDecision(allowed=True)

    def reset(self, client_key: Optional[str] = None) -> None:
        with self._lock:
            if client_key is None:
                self._history.clear()
            else:
                self._history.pop(client_key, None)

    def tracked_clients(self) -> int:
        with self._lock:
            return len(self._history)
