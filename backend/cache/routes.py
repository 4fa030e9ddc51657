"""
Cache API Routes
缓存 API 路由

Provides HTTP endpoints for the scrape result cache:
- GET  /api/cache/list      - List cached scrape results
- GET  /api/cache/stats     - Get cache statistics
- POST /api/cache/clear     - Drop all cached scrape results
"""

from typing import List

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from .memory_store import MemoryStore, get_feed_store

router = APIRouter(prefix="/api/cache", tags=["cache"])


# ============================================
# Response Models
# ============================================

class CacheSummary(BaseModel):
    """Summary of a cache entry (for list endpoint)"""
    key: str
    captured_at: float
    created_at: str
    post_count: int

class CacheListResponse(BaseModel):
    """Response model for list endpoint"""
    success: bool
    count: int
    items: List[CacheSummary]

class CacheStatsResponse(BaseModel):
    """Response model for stats endpoint"""
    total_entries: int
    fresh_entries: int
    stale_entries: int
    ttl_hours: float


# ============================================
# API Endpoints
# ============================================

@router.get("/list", response_model=CacheListResponse)
async def list_cache(store: MemoryStore = Depends(get_feed_store)):
    """
    List all cached scrape results
    列出所有缓存结果

    Returns summaries only; image data is never included.
    """
    entries = store.list_all()
    return CacheListResponse(
        success=True,
        count=len(entries),
        items=[CacheSummary(**e.to_summary()) for e in entries],
    )


@router.get("/stats", response_model=CacheStatsResponse)
async def get_cache_stats(store: MemoryStore = Depends(get_feed_store)):
    """
    Get cache statistics
    获取缓存统计信息
    """
    return CacheStatsResponse(**store.stats())


@router.post("/clear")
async def clear_cache(store: MemoryStore = Depends(get_feed_store)):
    """
    Clear all cache entries
    清空所有缓存

    The next request for every profile goes to Instagram again.
    """
    count = store.clear()
    return {
        "success": True,
        "message": f"Cleared {count} cache entries",
        "deleted_count": count,
    }
