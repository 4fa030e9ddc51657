"""
Instagram Scrape API Routes

Provides endpoints for:
- Fetching a profile's latest posts with images inlined as Base64
- CORS preflight for browser clients
- Health check
"""

import os
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, Response

from cache.memory_store import MemoryStore, feed_cache, get_feed_store
from image_inliner import ImageInliner

from .client import DEFAULT_QUERY_ID, InstagramClient
from .errors import FeedError
from .models import ErrorResponse, FeedRequest, FeedResponse
from .pipeline import DEFAULT_IMAGE_CONCURRENCY, FeedPipeline

logger = logging.getLogger(__name__)

# ============================================
# Configuration
# ============================================

IG_QUERY_ID = os.getenv("IG_QUERY_ID", DEFAULT_QUERY_ID)
HTTP_TIMEOUT_SECONDS = float(os.getenv("IG_HTTP_TIMEOUT_SECONDS", "30"))
IMAGE_FETCH_CONCURRENCY = int(os.getenv("IMAGE_FETCH_CONCURRENCY", str(DEFAULT_IMAGE_CONCURRENCY)))

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST",
    "Access-Control-Allow-Headers": "Content-Type",
}

# Shared clients, closed on application shutdown
instagram_client = InstagramClient(query_id=IG_QUERY_ID, timeout=HTTP_TIMEOUT_SECONDS)
image_inliner = ImageInliner(timeout=HTTP_TIMEOUT_SECONDS)

feed_pipeline = FeedPipeline(
    store=feed_cache,
    client=instagram_client,
    inliner=image_inliner,
    image_concurrency=IMAGE_FETCH_CONCURRENCY,
)


def get_feed_pipeline() -> FeedPipeline:
    """Dependency returning the shared pipeline (overridden in tests)."""
    return feed_pipeline


async def close_clients():
    """Close the shared HTTP clients."""
    await instagram_client.close()
    await image_inliner.close()


async def feed_error_handler(request: Request, exc: FeedError) -> JSONResponse:
    """Map a FeedError to its status code with the error/message body."""
    if exc.status_code >= 500:
        logger.error(f"[Scrape] {exc.status_code} {exc.error}: {exc.message}")
    else:
        logger.info(f"[Scrape] {exc.status_code} {exc.error}")
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
        headers=CORS_HEADERS,
    )


# ============================================
# Router
# ============================================

router = APIRouter(prefix="/api/instagram", tags=["Instagram"])


# ============================================
# Endpoints
# ============================================

@router.options("/scrape")
async def scrape_preflight():
    """CORS preflight: 200 with no body."""
    return Response(status_code=200, headers=CORS_HEADERS)


@router.post(
    "/scrape",
    response_model=FeedResponse,
    responses={400: {"model": ErrorResponse}, 502: {"model": ErrorResponse}, 504: {"model": ErrorResponse}},
)
async def scrape_profile(
    request: Optional[FeedRequest] = None,
    pipeline: FeedPipeline = Depends(get_feed_pipeline),
):
    """
    Fetch the latest posts of an Instagram profile.

    This endpoint:
    1. Returns the cached result if it is less than 24 hours old
    2. Otherwise queries Instagram for the first page of posts
    3. Downloads every full-size image and inlines it as Base64
    4. Caches and returns the result

    Example:
        POST /api/instagram/scrape
        {
            "profile_id": "1234567",
            "first": 2
        }
    """
    request = request or FeedRequest()
    payload = await pipeline.handle(request.profile_id, request.first)
    return JSONResponse(content=payload.model_dump(), headers=CORS_HEADERS)


@router.get("/health")
async def health_check(store: MemoryStore = Depends(get_feed_store)):
    """Health check endpoint."""
    return JSONResponse(content={
        "status": "healthy",
        "service": "instagram-scrape",
        "cache_stats": store.stats(),
    }, headers=CORS_HEADERS)
