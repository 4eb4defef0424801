from __future__ import annotations

from datetime import datetime
from typing import Protocol

from devconnect.domain.entities.post import FeedPost, Post


class PostReader(Protocol):
    async def get_by_id(self, post_id: int) -> Post | None: ...

    async def list_feed(
        self, viewer_id: int | None, *, offset: int = 0, limit: int = 20
    ) -> list[FeedPost]: ...


class PostWriter(Protocol):
    async def lock(self, post_id: int) -> Post | None:
        """Take the row lock that serializes counter updates for a post."""
        ...

    async def create(self, user_id: int, content: str, now: datetime) -> Post: ...

    async def update(self, post_id: int, content: str, now: datetime) -> Post: ...

    async def delete(self, post_id: int) -> None: ...
