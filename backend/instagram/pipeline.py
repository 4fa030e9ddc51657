"""
Feed Pipeline

cache lookup -> Instagram query -> per-post image inlining -> response
assembly -> cache write.

Posts come back in the reverse of the order Instagram delivers them; each
keeps its original index as id.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from cache.memory_store import MemoryStore, make_cache_key
from image_inliner import ImageInliner

from .client import InstagramClient
from .errors import ValidationError
from .models import FeedResponse, Post, PostDescriptor

logger = logging.getLogger(__name__)

DEFAULT_FIRST = 10
DEFAULT_IMAGE_CONCURRENCY = 4

MISSING_PROFILE_ERROR = "Profile ID is required and cannot be empty."
MISSING_PROFILE_MESSAGE = "Please provide a valid Instagram profile ID."


def format_published_on(timestamp: int) -> str:
    """Render a Unix timestamp as DD-Mon-YYYY in UTC, e.g. 05-Mar-2024."""
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime("%d-%b-%Y")


class FeedPipeline:
    """
    Handles one scrape request end to end.

    Collaborators are injected so tests can swap the store (with a fake
    clock), the Instagram client and the image inliner.
    """

    def __init__(
        self,
        store: MemoryStore,
        client: InstagramClient,
        inliner: ImageInliner,
        image_concurrency: int = DEFAULT_IMAGE_CONCURRENCY,
    ):
        if image_concurrency < 1:
            raise ValueError("image_concurrency must be at least 1")
        self.store = store
        self.client = client
        self.inliner = inliner
        self.image_concurrency = image_concurrency
        # at most one refresh in flight per cache key; dropped once unused
        self._key_locks: Dict[str, asyncio.Lock] = {}
        self._lock_users: Dict[str, int] = {}

    @staticmethod
    def resolve_request(profile_id: Optional[str], first: Optional[int]) -> tuple:
        """
        Validate the request and apply the default post count.

        Raises:
            ValidationError: if profile_id is missing/empty or first is not positive
        """
        if not profile_id:
            raise ValidationError(MISSING_PROFILE_ERROR, MISSING_PROFILE_MESSAGE)
        count = DEFAULT_FIRST if first is None else first
        if count < 1:
            raise ValidationError(
                "Number of posts must be a positive integer.",
                f"Received first={count}; omit it to fetch {DEFAULT_FIRST} posts.",
            )
        return profile_id, count

    async def handle(self, profile_id: Optional[str], first: Optional[int] = None) -> FeedResponse:
        """
        Return the feed for a profile, from cache when fresh.

        Args:
            profile_id: Instagram profile ID
            first: Number of posts (default 10)

        Returns:
            FeedResponse

        Raises:
            ValidationError: bad request body
            UpstreamError: Instagram query failed
            ImageFetchError: any image failed; nothing is cached
        """
        profile_id, count = self.resolve_request(profile_id, first)
        key = make_cache_key(profile_id, count)

        cached = self.store.get_fresh(key)
        if cached:
            logger.info(f"[FeedPipeline] Returning cached data for {key}")
            return cached.payload

        lock = self._key_locks.get(key)
        if lock is None:
            lock = self._key_locks[key] = asyncio.Lock()
        self._lock_users[key] = self._lock_users.get(key, 0) + 1
        try:
            async with lock:
                # another request may have refreshed the key while we waited
                cached = self.store.get_fresh(key)
                if cached:
                    logger.info(f"[FeedPipeline] Returning cached data for {key}")
                    return cached.payload

                payload = await self._fetch(profile_id, count)
                self.store.set(key, payload)
                logger.info(f"[FeedPipeline] Cached {payload.first} posts under {key}")
                return payload
        finally:
            self._release_lock(key)

    def _release_lock(self, key: str) -> None:
        self._lock_users[key] -= 1
        if not self._lock_users[key]:
            del self._lock_users[key]
            del self._key_locks[key]

    async def _fetch(self, profile_id: str, count: int) -> FeedResponse:
        page = await self.client.fetch_timeline(profile_id, count)
        images = await self._inline_images(page.descriptors)

        posts: List[Post] = []
        for index, (descriptor, encoded) in enumerate(zip(page.descriptors, images)):
            # last upstream post ends up first
            posts.insert(0, self._build_post(index, descriptor, encoded))

        return FeedResponse(first=len(posts), total=page.total, result=posts)

    async def _inline_images(self, descriptors: List[PostDescriptor]) -> List[str]:
        """Inline every display_url with bounded concurrency; results keep descriptor order."""
        semaphore = asyncio.Semaphore(self.image_concurrency)

        async def inline_one(descriptor: PostDescriptor) -> str:
            async with semaphore:
                return await self.inliner.inline(descriptor.display_url)

        tasks = [asyncio.ensure_future(inline_one(d)) for d in descriptors]
        try:
            return list(await asyncio.gather(*tasks))
        except Exception:
            for task in tasks:
                task.cancel()
            raise

    @staticmethod
    def _build_post(index: int, descriptor: PostDescriptor, encoded: str) -> Post:
        return Post(
            id=index,
            text=descriptor.caption,
            thumbnail_src=descriptor.thumbnail_src,
            display_url=descriptor.display_url,
            shortcode=descriptor.shortcode,
            base64=encoded,
            created_at=format_published_on(descriptor.taken_at_timestamp),
        )
