from __future__ import annotations

from typing import Protocol


class LikeReader(Protocol):
    async def exists(self, post_id: int, user_id: int) -> bool: ...

    async def count_for_post(self, post_id: int) -> int: ...


class LikeWriter(Protocol):
    async def add(self, post_id: int, user_id: int) -> None: ...

    async def remove(self, post_id: int, user_id: int) -> None: ...

    async def delete_for_post(self, post_id: int) -> None: ...
