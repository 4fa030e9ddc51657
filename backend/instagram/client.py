"""
Instagram Upstream Client

Issues the GraphQL timeline query for one profile and parses the nested
response into a TimelinePage. Only the first page is ever requested.
"""

import json
import logging
from typing import Any, Dict, List, Optional

import httpx

from .errors import UpstreamError
from .models import PostDescriptor, TimelinePage

logger = logging.getLogger(__name__)

GRAPHQL_URL = "https://www.instagram.com/graphql/query/"
DEFAULT_QUERY_ID = "17888483320059182"

DEFAULT_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/90.0.4430.93 Safari/537.36",
}


def _require(container: Any, key: str, path: str) -> Any:
    """Read container[key] or raise UpstreamError naming the missing path."""
    if not isinstance(container, dict) or key not in container:
        raise UpstreamError(f"Unexpected response shape: missing '{path}'")
    return container[key]


def _require_str(container: Any, key: str, path: str) -> str:
    """Read a string field or raise UpstreamError naming the path."""
    value = _require(container, key, path)
    if not isinstance(value, str):
        raise UpstreamError(f"Unexpected response shape: '{path}' is not a string")
    return value


def _parse_caption(node: Dict[str, Any], path: str) -> str:
    """Caption text lives in edge_media_to_caption.edges[0].node.text; no edge means no caption."""
    caption_edges = _require(
        _require(node, "edge_media_to_caption", f"{path}.edge_media_to_caption"),
        "edges",
        f"{path}.edge_media_to_caption.edges",
    )
    if not isinstance(caption_edges, list):
        raise UpstreamError(f"Unexpected response shape: '{path}.edge_media_to_caption.edges' is not a list")
    if not caption_edges:
        return ""
    caption_node = _require(caption_edges[0], "node", f"{path}.edge_media_to_caption.edges[0].node")
    text_path = f"{path}.edge_media_to_caption.edges[0].node.text"
    text = _require(caption_node, "text", text_path)
    if text is not None and not isinstance(text, str):
        raise UpstreamError(f"Unexpected response shape: '{text_path}' is not a string")
    return text or ""


def parse_descriptor(node: Dict[str, Any], index: int) -> PostDescriptor:
    """Convert one edge node into a PostDescriptor."""
    path = f"edges[{index}].node"
    timestamp = _require(node, "taken_at_timestamp", f"{path}.taken_at_timestamp")
    if not isinstance(timestamp, (int, float)) or isinstance(timestamp, bool):
        raise UpstreamError(f"Unexpected response shape: '{path}.taken_at_timestamp' is not a number")

    return PostDescriptor(
        caption=_parse_caption(node, path),
        thumbnail_src=_require_str(node, "thumbnail_src", f"{path}.thumbnail_src"),
        display_url=_require_str(node, "display_url", f"{path}.display_url"),
        shortcode=_require_str(node, "shortcode", f"{path}.shortcode"),
        taken_at_timestamp=int(timestamp),
    )


def parse_timeline(body: Dict[str, Any]) -> TimelinePage:
    """
    Parse data.user.edge_owner_to_timeline_media into a TimelinePage.

    Raises:
        UpstreamError: if any expected field is missing
    """
    data = _require(body, "data", "data")
    user = _require(data, "user", "data.user")
    if user is None:
        raise UpstreamError("Profile not found: 'data.user' is null")
    media = _require(user, "edge_owner_to_timeline_media", "data.user.edge_owner_to_timeline_media")
    total = _require(media, "count", "edge_owner_to_timeline_media.count")
    if not isinstance(total, int) or isinstance(total, bool):
        raise UpstreamError("Unexpected response shape: 'edge_owner_to_timeline_media.count' is not an integer")
    edges = _require(media, "edges", "edge_owner_to_timeline_media.edges")
    if not isinstance(edges, list):
        raise UpstreamError("Unexpected response shape: 'edges' is not a list")

    descriptors: List[PostDescriptor] = []
    for index, edge in enumerate(edges):
        node = _require(edge, "node", f"edges[{index}].node")
        descriptors.append(parse_descriptor(node, index))

    return TimelinePage(total=total, descriptors=descriptors)


class InstagramClient:
    """
    Client for the Instagram GraphQL timeline query

    Usage:
        client = InstagramClient()
        page = await client.fetch_timeline("1234567", first=10)
    """

    def __init__(
        self,
        http_client: Optional[httpx.AsyncClient] = None,
        query_id: str = DEFAULT_QUERY_ID,
        timeout: float = 30.0,
    ):
        self.query_id = query_id
        self._owns_client = http_client is None
        self.http_client = http_client or httpx.AsyncClient(
            timeout=timeout,
            follow_redirects=True,
            headers=DEFAULT_HEADERS,
        )

    async def close(self):
        """Close HTTP client if we created it."""
        if self._owns_client:
            await self.http_client.aclose()

    def build_params(self, profile_id: str, first: int) -> Dict[str, str]:
        """Query string for the timeline query (no cursor, first page only)"""
        variables = {"id": profile_id, "first": first, "after": None}
        return {
            "query_id": self.query_id,
            "variables": json.dumps(variables, separators=(",", ":")),
        }

    async def fetch_timeline(self, profile_id: str, first: int = 10) -> TimelinePage:
        """
        Fetch the first page of a profile's timeline.

        Args:
            profile_id: Instagram profile ID (non-empty)
            first: Number of posts to request

        Returns:
            TimelinePage with total count and descriptors in upstream order

        Raises:
            UpstreamError: on network failure, non-JSON body or unexpected shape
        """
        if not profile_id:
            raise ValueError("profile_id must be non-empty")

        params = self.build_params(profile_id, first)
        logger.info(f"[InstagramClient] GET {GRAPHQL_URL} variables={params['variables']}")

        try:
            response = await self.http_client.get(GRAPHQL_URL, params=params)
            response.raise_for_status()
        except httpx.TimeoutException:
            logger.error(f"[InstagramClient] Timeout for profile {profile_id}")
            raise UpstreamError(f"Timed out querying Instagram for profile {profile_id}", status_code=504)
        except httpx.HTTPStatusError as e:
            logger.error(f"[InstagramClient] HTTP error {e.response.status_code} for profile {profile_id}")
            raise UpstreamError(f"Instagram returned HTTP {e.response.status_code}")
        except httpx.HTTPError as e:
            logger.error(f"[InstagramClient] Request error for profile {profile_id}: {e}")
            raise UpstreamError(f"Failed to reach Instagram: {e}")

        try:
            body = response.json()
        except ValueError:
            logger.error(f"[InstagramClient] Non-JSON response for profile {profile_id}: {response.text[:200]}")
            raise UpstreamError("Instagram returned a non-JSON response")

        logger.debug(f"[InstagramClient] Response: {json.dumps(body)[:500]}")

        page = parse_timeline(body)
        logger.info(
            f"[InstagramClient] Profile {profile_id}: {page.returned_count} posts returned, {page.total} total"
        )
        return page
