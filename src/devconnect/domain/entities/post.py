from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class Post:
    id: int
    user_id: int
    username: str
    content: str
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True, slots=True)
class FeedPost:
    """Post row enriched with engagement counters for one viewer."""

    post: Post
    like_count: int
    comment_count: int
    is_liked: bool
