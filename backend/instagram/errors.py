"""
Feed Errors

Every error carries the HTTP status and the error/message pair that the
routes layer turns into a JSON response.
"""

from typing import Dict, Optional


class FeedError(Exception):
    """Base error for the feed proxy."""

    status_code: int = 500
    error: str = "Internal error"

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> Dict[str, str]:
        return {"error": self.error, "message": self.message}


class ValidationError(FeedError):
    """Request body is missing or has an invalid field."""

    status_code = 400

    def __init__(self, error: str, message: str):
        super().__init__(message)
        self.error = error


class UpstreamError(FeedError):
    """The Instagram query failed or returned an unexpected shape."""

    status_code = 502
    error = "Upstream request failed"


class ImageFetchError(FeedError):
    """An image referenced by a post could not be downloaded."""

    status_code = 502
    error = "Image fetch failed"
