from __future__ import annotations

from typing import Protocol

from devconnect.domain.entities.user import User


class UserReader(Protocol):
    async def get_by_id(self, user_id: int) -> User | None: ...

    async def list_all(self) -> list[User]: ...


class UserWriter(Protocol):
    async def set_banned(self, user_id: int, banned: bool) -> bool:
        """Return False when the user does not exist."""
        ...

    async def set_muted(self, user_id: int, muted: bool) -> bool: ...

    async def set_role(self, user_id: int, role: str) -> bool: ...

    async def set_profile_image(self, user_id: int, url: str | None) -> bool: ...
