"""
Memory Cache Module
内存缓存模块

Provides in-memory storage for scrape results so repeated requests
for the same profile and post count skip Instagram for 24 hours.
"""

from .memory_store import MemoryStore, CacheEntry, feed_cache, get_feed_store, make_cache_key
from .routes import router as cache_router

__all__ = [
    "MemoryStore",
    "CacheEntry",
    "feed_cache",
    "get_feed_store",
    "make_cache_key",
    "cache_router",
]
