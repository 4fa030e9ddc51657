"""
Feed proxy test configuration

Fixtures shared by the test modules:
- FakeClock: controllable time source for the cache
- FakeInstagramClient / FakeInliner: stand-ins that count calls
- make_node / make_timeline_body: build Instagram-shaped JSON

关键概念：
- 所有外部 HTTP 调用都被替换，测试不访问网络
"""

import asyncio
import sys
from pathlib import Path
from typing import Dict, List, Optional

import pytest

# 添加 backend 目录到 Python 路径
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

from cache.memory_store import MemoryStore
from instagram.errors import ImageFetchError
from instagram.models import PostDescriptor, TimelinePage
from instagram.pipeline import FeedPipeline


DAY_SECONDS = 24 * 60 * 60


# ============================================
# Fakes
# ============================================

class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeInstagramClient:
    """Returns a prepared TimelinePage and records every call."""

    def __init__(self, page: Optional[TimelinePage] = None, error: Optional[Exception] = None, delay: float = 0.0):
        self.page = page or make_page(3)
        self.error = error
        self.delay = delay
        self.calls: List[tuple] = []

    async def fetch_timeline(self, profile_id: str, first: int = 10) -> TimelinePage:
        self.calls.append((profile_id, first))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return self.page


class FakeInliner:
    """Encodes a URL as "b64:<url>"; URLs listed in fail_urls raise ImageFetchError."""

    def __init__(self, fail_urls: Optional[Dict[str, int]] = None, delay: float = 0.0):
        self.fail_urls = fail_urls or {}
        self.delay = delay
        self.calls: List[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def inline(self, url: str) -> str:
        self.calls.append(url)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if url in self.fail_urls:
                raise ImageFetchError(f"Failed to fetch image {url}", status_code=self.fail_urls[url])
            return f"b64:{url}"
        finally:
            self.in_flight -= 1


# ============================================
# Builders
# ============================================

def make_descriptor(index: int, timestamp: int = 1709596800) -> PostDescriptor:
    return PostDescriptor(
        caption=f"caption {index}",
        thumbnail_src=f"https://cdn.example.com/thumb/{index}.jpg",
        display_url=f"https://cdn.example.com/full/{index}.jpg",
        shortcode=f"SC{index}",
        taken_at_timestamp=timestamp + index * DAY_SECONDS,
    )


def make_page(count: int, total: int = 120) -> TimelinePage:
    return TimelinePage(total=total, descriptors=[make_descriptor(i) for i in range(count)])


def make_node(index: int, caption: Optional[str] = None, timestamp: int = 1709596800) -> dict:
    """One edge node as Instagram returns it."""
    caption_edges = [] if caption is None else [{"node": {"text": caption}}]
    return {
        "node": {
            "id": str(1000 + index),
            "shortcode": f"SC{index}",
            "display_url": f"https://cdn.example.com/full/{index}.jpg",
            "thumbnail_src": f"https://cdn.example.com/thumb/{index}.jpg",
            "taken_at_timestamp": timestamp,
            "edge_media_to_caption": {"edges": caption_edges},
        }
    }


def make_timeline_body(edges: List[dict], total: int = 120) -> dict:
    return {
        "data": {
            "user": {
                "edge_owner_to_timeline_media": {
                    "count": total,
                    "page_info": {"has_next_page": True, "end_cursor": "abc"},
                    "edges": edges,
                }
            }
        },
        "status": "ok",
    }


# ============================================
# Fixtures
# ============================================

@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return MemoryStore(ttl_seconds=DAY_SECONDS, clock=clock)


@pytest.fixture
def instagram_client():
    return FakeInstagramClient()


@pytest.fixture
def inliner():
    return FakeInliner()


@pytest.fixture
def pipeline(store, instagram_client, inliner):
    return FeedPipeline(store=store, client=instagram_client, inliner=inliner, image_concurrency=2)
