"""
Storage Module
存储模块 - 进程内缓存
"""
from .cache import (
    CacheEntry,
    CacheState,
    TTLCache,
)

__all__ = [
    "CacheEntry",
    "CacheState",
    "TTLCache",
]
