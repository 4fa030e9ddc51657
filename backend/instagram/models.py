"""
Instagram Feed Data Models

包含：
- PostDescriptor: 上游返回的单条帖子（未处理）
- TimelinePage: 上游返回的一页时间线
- FeedRequest: 请求体
- Post: 返回给调用方的帖子
- FeedResponse: 返回给调用方的完整响应
- ErrorResponse: 错误响应
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator


# ==================== Upstream Models ====================

@dataclass(frozen=True)
class PostDescriptor:
    """One timeline node as Instagram delivers it."""
    caption: str
    thumbnail_src: str
    display_url: str
    shortcode: str
    taken_at_timestamp: int


@dataclass(frozen=True)
class TimelinePage:
    """First page of a profile's timeline."""
    total: int
    descriptors: List[PostDescriptor] = field(default_factory=list)

    @property
    def returned_count(self) -> int:
        return len(self.descriptors)


# ==================== API Models ====================

class FeedRequest(BaseModel):
    """
    Request body for the scrape endpoint

    profile_id is optional here so that a missing value reaches the
    pipeline and produces the 400 error body instead of a 422.
    """
    profile_id: Optional[str] = Field(None, description="Instagram profile ID")
    first: Optional[int] = Field(None, description="Number of posts to fetch (default 10)")

    @field_validator("profile_id", mode="before")
    @classmethod
    def numeric_profile_id(cls, value: Any) -> Any:
        # profile IDs are numeric and clients often send them unquoted
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


class Post(BaseModel):
    """A post with its full-size image inlined as base64."""
    id: int
    text: str
    thumbnail_src: str
    display_url: str
    shortcode: str
    base64: str
    created_at: str


class FeedResponse(BaseModel):
    """
    Response body

    first: posts returned in this payload
    total: posts the profile has in total
    result: posts, last upstream post first
    """
    first: int
    total: int
    result: List[Post] = []


class ErrorResponse(BaseModel):
    error: str
    message: str
