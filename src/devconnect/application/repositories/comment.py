from __future__ import annotations

from datetime import datetime
from typing import Protocol

from devconnect.domain.entities.comment import Comment


class CommentReader(Protocol):
    async def get_by_id(self, comment_id: int) -> Comment | None: ...

    async def list_for_post(self, post_id: int) -> list[Comment]: ...

    async def count_for_post(self, post_id: int) -> int: ...


class CommentWriter(Protocol):
    async def create(
        self, post_id: int, user_id: int, content: str, now: datetime
    ) -> Comment: ...

    async def delete(self, comment_id: int) -> None: ...

    async def delete_for_post(self, post_id: int) -> None: ...
