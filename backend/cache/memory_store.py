"""
Memory Store Implementation
内存存储实现

Thread-safe in-memory storage for scrape results, keyed by
"{profile_id}:{first}".

Features:
- Thread-safe operations with Lock
- Injectable clock so freshness can be tested without sleeping
- Entries are overwritten, never evicted; freshness is decided on read
"""

import os
import time
from typing import Callable, Dict, Any, Optional, TYPE_CHECKING
from dataclasses import dataclass
from threading import Lock
from datetime import datetime, timezone

if TYPE_CHECKING:
    from instagram.models import FeedResponse

# Default freshness window (24h)
DEFAULT_TTL_SECONDS = 24 * 60 * 60


@dataclass(frozen=True)
class CacheEntry:
    """
    Cache entry data structure
    缓存条目数据结构
    """
    key: str                         # "{profile_id}:{first}"
    captured_at: float               # Unix timestamp when stored
    payload: "FeedResponse"          # Response returned verbatim on a hit

    def age(self, now: float) -> float:
        """Seconds since the entry was stored"""
        return now - self.captured_at

    def is_fresh(self, ttl: float, now: float) -> bool:
        """Check if the entry is still inside the freshness window"""
        return self.age(now) < ttl

    @property
    def created_at(self) -> str:
        """Get ISO format creation time"""
        return datetime.fromtimestamp(self.captured_at, tz=timezone.utc).isoformat()

    def to_summary(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "captured_at": self.captured_at,
            "created_at": self.created_at,
            "post_count": self.payload.first,
        }


def make_cache_key(profile_id: str, first: int) -> str:
    """Build the cache key for a profile and post count"""
    return f"{profile_id}:{first}"


class MemoryStore:
    """
    Thread-safe in-memory storage
    线程安全的内存存储

    get() never expires anything on its own; callers decide freshness
    with CacheEntry.is_fresh().
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize memory store

        Args:
            ttl_seconds: Freshness window reported to callers (24h)
            clock: Returns the current Unix time in seconds
        """
        self._store: Dict[str, CacheEntry] = {}
        self._lock = Lock()
        self.ttl_seconds = ttl_seconds
        self.clock = clock

    def get(self, key: str) -> Optional[CacheEntry]:
        """
        Get cache entry by key, regardless of age
        根据 key 获取缓存条目
        """
        with self._lock:
            return self._store.get(key)

    def set(self, key: str, payload: "FeedResponse") -> CacheEntry:
        """
        Store a payload, overwriting any previous entry for the key
        存储结果（覆盖旧条目）

        Returns:
            The new CacheEntry
        """
        entry = CacheEntry(key=key, captured_at=self.clock(), payload=payload)
        with self._lock:
            self._store[key] = entry
        return entry

    def get_fresh(self, key: str) -> Optional[CacheEntry]:
        """Get the entry only if it is inside the freshness window"""
        entry = self.get(key)
        if entry and entry.is_fresh(self.ttl_seconds, self.clock()):
            return entry
        return None

    def clear(self) -> int:
        """
        Clear all cache entries
        清空所有缓存

        Returns:
            Number of entries deleted
        """
        with self._lock:
            count = len(self._store)
            self._store.clear()
            return count

    def stats(self) -> Dict[str, Any]:
        """
        Get cache statistics
        获取缓存统计信息
        """
        now = self.clock()
        with self._lock:
            entries = list(self._store.values())
        fresh = sum(1 for e in entries if e.is_fresh(self.ttl_seconds, now))
        return {
            "total_entries": len(entries),
            "fresh_entries": fresh,
            "stale_entries": len(entries) - fresh,
            "ttl_hours": self.ttl_seconds / 3600,
        }

    def list_all(self):
        """List all entries, newest first"""
        with self._lock:
            entries = list(self._store.values())
        return sorted(entries, key=lambda e: -e.captured_at)


# Global singleton instance
# 全局单例实例
feed_cache = MemoryStore(
    ttl_seconds=float(os.getenv("FEED_CACHE_TTL_HOURS", "24")) * 3600,
)


def get_feed_store() -> MemoryStore:
    """Dependency returning the shared store (overridden in tests)."""
    return feed_cache
