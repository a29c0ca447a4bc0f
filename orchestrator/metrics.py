"""In-process API usage recorder backing the metrics endpoint."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from threading import Lock
import time
from typing import Any, Deque, Dict, List, Optional, Tuple


def _utc_iso(ts: Optional[datetime] = None) -> str:
    return (ts or datetime.now(timezone.utc)).isoformat(timespec="seconds")


@dataclass(frozen=True)
class UsageRecord:
    """One handled request."""

    endpoint: str
    method: str
    status_code: int
    duration_ms: float
    cache_hit: Optional[bool] = None
    cache_backend: str = "memory"
    ts: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ts": _utc_iso(self.ts),
            "endpoint": self.endpoint,
            "method": self.method,
            "statusCode": self.status_code,
            "durationMs": round(self.duration_ms, 1),
            "cacheHit": self.cache_hit,
            "cacheBackend": self.cache_backend,
        }


@dataclass
class _EndpointStats:
    endpoint: str
    method: str
    total: int = 0
    success: int = 0
    errors: int = 0
    status2xx: int = 0
    status4xx: int = 0
    status5xx: int = 0
    rate_limited: int = 0
    cache_hits: int = 0
    cache_misses: int = 0
    latency_total_ms: float = 0.0
    last_seen_at: Optional[datetime] = None

    def add(self, record: UsageRecord) -> None:
        self.total += 1
        code = record.status_code
        if code < 400:
            self.success += 1
        else:
            self.errors += 1
        if 200 <= code < 300:
            self.status2xx += 1
        elif 400 <= code < 500:
            self.status4xx += 1
        elif code >= 500:
            self.status5xx += 1
        if code == 429:
            self.rate_limited += 1
        if record.cache_hit is True:
            self.cache_hits += 1
        elif record.cache_hit is False:
            self.cache_misses += 1
        self.latency_total_ms += record.duration_ms
        self.last_seen_at = record.ts

    def to_dict(self) -> Dict[str, Any]:
        return {
            "endpoint": self.endpoint,
            "method": self.method,
            "total": self.total,
            "success": self.success,
            "errors": self.errors,
            "status2xx": self.status2xx,
            "status4xx": self.status4xx,
            "status5xx": self.status5xx,
            "rateLimited": self.rate_limited,
            "cacheHits": self.cache_hits,
            "cacheMisses": self.cache_misses,
            "avgLatencyMs": round(self.latency_total_ms / self.total, 1) if self.total else 0.0,
            "lastSeenAt": _utc_iso(self.last_seen_at) if self.last_seen_at else "",
        }


class UsageMetrics:
    """Thread-safe counters; nothing here affects request handling."""

    def __init__(self, *, recent_limit: int = 50) -> None:
        self._started_at = datetime.now(timezone.utc)
        self._started_mono = time.monotonic()
        self._recent: Deque[UsageRecord] = deque(maxlen=max(1, int(recent_limit)))
        self._endpoints: Dict[Tuple[str, str], _EndpointStats] = {}
        self._lock = Lock()

    def record(self, record: UsageRecord) -> None:
        with self._lock:
            key = (record.endpoint, record.method)
            stats = self._endpoints.get(key)
            if stats is None:
                stats = _EndpointStats(endpoint=record.endpoint, method=record.method)
                self._endpoints[key] = stats
            stats.add(record)
            self._recent.appendleft(record)

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            endpoints = sorted(self._endpoints.values(), key=lambda s: s.total, reverse=True)
            total = sum(s.total for s in endpoints)
            success = sum(s.success for s in endpoints)
            latency = sum(s.latency_total_ms for s in endpoints)
            recent: List[Dict[str, Any]] = [item.to_dict() for item in self._recent]
            endpoint_rows = [s.to_dict() for s in endpoints]

        return {
            "generatedAt": _utc_iso(),
            "startedAt": _utc_iso(self._started_at),
            "uptimeSec": int(time.monotonic() - self._started_mono),
            "totals": {
                "requests": total,
                "successRequests": success,
                "errorRequests": total - success,
                "successRate": round(success / total, 4) if total else 0.0,
                "avgLatencyMs": round(latency / total, 1) if total else 0.0,
            },
            "endpoints": endpoint_rows,
            "recentRequests": recent,
        }

    def reset(self) -> None:
        with self._lock:
            self._recent.clear()
            self._endpoints.clear()
