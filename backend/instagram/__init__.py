"""
Instagram Feed Module

Proxies the Instagram GraphQL timeline query for one profile and returns a
simplified post list with every image inlined as Base64.

Features:
- 24h in-memory cache per (profile_id, first)
- Bounded-concurrency image downloads, ordering preserved
- Errors mapped to 400/502/504 JSON responses

The HTTP router lives in instagram.routes_fastapi.
"""

from .errors import FeedError, ValidationError, UpstreamError, ImageFetchError
from .models import FeedRequest, FeedResponse, Post, PostDescriptor, TimelinePage

__all__ = [
    "FeedError",
    "ValidationError",
    "UpstreamError",
    "ImageFetchError",
    "FeedRequest",
    "FeedResponse",
    "Post",
    "PostDescriptor",
    "TimelinePage",
]
