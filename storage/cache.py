"""
Cache
内存 TTL 缓存模块
"""
from dataclasses import dataclass
from enum import Enum
from threading import Lock
from typing import Any, Callable, Dict, Generic, Optional, TypeVar
import hashlib
import logging
import time


logger = logging.getLogger(__name__)

T = TypeVar("T")

Clock = Callable[[], float]


class CacheState(str, Enum):
    """缓存键的新鲜度状态"""

    FRESH = "fresh"
    COMPUTING = "computing"
    STALE = "stale"
    ABSENT = "absent"


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    """缓存条目: 值 + 写入时间 (秒, 来自 clock)"""

    value: T
    inserted_at: float

    def age(self, now: float) -> float:
        return max(0.0, now - self.inserted_at)


class TTLCache(Generic[T]):
    """
    内存缓存
    条目在 now - inserted_at < ttl 时有效; 过期条目保留到被覆盖或清理,
    以便调用方区分 STALE 与 ABSENT
    """

    def __init__(self, ttl: float, max_size: int = 1000, clock: Optional[Clock] = None):
        """
        初始化内存缓存

        Args:
            ttl: 过期时间 (秒)
            max_size: 最大缓存条目数
            clock: 时间源, 默认 time.monotonic
        """
        self.ttl = float(ttl)
        self.max_size = max(1, int(max_size))
        self._clock = clock or time.monotonic
        self._cache: Dict[str, CacheEntry[T]] = {}
        self._lock = Lock()

    def now(self) -> float:
        return self._clock()

    def is_fresh(self, entry: CacheEntry[T], now: Optional[float] = None) -> bool:
        current = self.now() if now is None else now
        return entry.age(current) < self.ttl

    def _cleanup(self, now: float) -> None:
        """清理过期条目, 仍超限时删除最旧的"""
        expired_keys = [k for k, v in self._cache.items() if v.age(now) >= self.ttl]
        for key in expired_keys:
            del self._cache[key]

        if len(self._cache) >= self.max_size:
            sorted_keys = sorted(self._cache.keys(), key=lambda k: self._cache[k].inserted_at)
            for key in sorted_keys[: len(self._cache) - self.max_size + 1]:
                del self._cache[key]

    def get_entry(self, key: str) -> Optional[CacheEntry[T]]:
        """返回条目 (可能已过期)"""
        with self._lock:
            return self._cache.get(key)

    def state(self, key: str) -> CacheState:
        entry = self.get_entry(key)
        if entry is None:
            return CacheState.ABSENT
        return CacheState.FRESH if self.is_fresh(entry) else CacheState.STALE

    def get(self, key: str) -> Optional[T]:
        """获取未过期的缓存值"""
        entry = self.get_entry(key)
        if entry is None or not self.is_fresh(entry):
            return None
        return entry.value

    def set(self, key: str, value: T) -> CacheEntry[T]:
        """设置缓存值"""
        with self._lock:
            now = self.now()
            if key not in self._cache:
                self._cleanup(now)
            entry = CacheEntry(value=value, inserted_at=now)
            self._cache[key] = entry
            return entry

    def delete(self, key: str) -> None:
        with self._lock:
            self._cache.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()

    def size(self) -> int:
        with self._lock:
            return len(self._cache)

    @staticmethod
    def make_key(*parts: Any) -> str:
        """
        根据参数生成缓存键

        Args:
            *parts: 组成键的各部分, 顺序敏感

        Returns:
            缓存键
        """
        key_string = "\n".join(str(part) for part in parts)
        return hashlib.sha256(key_string.encode("utf-8")).hexdigest()
