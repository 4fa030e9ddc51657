"""
Image Inliner Core Logic

Handles:
- Downloading a post's full-size image
- Converting the raw bytes to Base64 so the image travels inside the JSON response
"""

import base64
import logging
from typing import Optional

import httpx

from instagram.errors import ImageFetchError

logger = logging.getLogger(__name__)

# Browser-like headers; Instagram's CDN rejects obvious bots
BROWSER_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/90.0.4430.93 Safari/537.36",
    "Accept": "image/avif,image/webp,image/apng,image/*,*/*;q=0.8",
}


class ImageInliner:
    """
    Fetches one image and returns it Base64-encoded.

    No caching at this layer; every call is one outbound request.

    Usage:
        inliner = ImageInliner()
        encoded = await inliner.inline(url)
    """

    def __init__(
        self,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
    ):
        self._owns_client = http_client is None
        self.http_client = http_client or httpx.AsyncClient(
            timeout=timeout,
            follow_redirects=True,
            headers=BROWSER_HEADERS,
        )

    async def close(self):
        """Close HTTP client if we created it."""
        if self._owns_client:
            await self.http_client.aclose()

    async def fetch(self, url: str) -> bytes:
        """
        Download the raw image bytes.

        Raises:
            ImageFetchError: on timeout, transport error or non-2xx status
        """
        try:
            logger.debug(f"[ImageInliner] Downloading: {url[:80]}...")
            response = await self.http_client.get(url)
            response.raise_for_status()
        except httpx.TimeoutException:
            logger.error(f"[ImageInliner] Timeout: {url[:60]}...")
            raise ImageFetchError(f"Timed out fetching image {url}", status_code=504)
        except httpx.HTTPStatusError as e:
            logger.error(f"[ImageInliner] HTTP error {e.response.status_code}: {url[:60]}...")
            raise ImageFetchError(
                f"Image request returned HTTP {e.response.status_code}: {url}"
            )
        except httpx.HTTPError as e:
            logger.error(f"[ImageInliner] Fetch error: {url[:60]}... - {e}")
            raise ImageFetchError(f"Failed to fetch image {url}: {e}")
        except httpx.InvalidURL as e:
            logger.error(f"[ImageInliner] Invalid URL: {url[:60]}... - {e}")
            raise ImageFetchError(f"Invalid image URL {url}: {e}")

        return response.content

    async def inline(self, url: str) -> str:
        """
        Download an image and return its Base64 text.

        Args:
            url: Full-size image URL (display_url)

        Returns:
            Base64-encoded image data
        """
        data = await self.fetch(url)
        encoded = base64.b64encode(data).decode("ascii")
        logger.debug(f"[ImageInliner] Inlined: {url[:40]}... ({len(data) // 1024}KB)")
        return encoded
