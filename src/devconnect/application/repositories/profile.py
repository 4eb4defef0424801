from __future__ import annotations

from datetime import datetime
from typing import Protocol

from devconnect.domain.entities.profile import Profile


class ProfileReader(Protocol):
    async def get_for_user(self, user_id: int) -> Profile | None: ...

    async def list_profiles(
        self, search: str | None, *, offset: int = 0, limit: int = 20
    ) -> list[Profile]:
        """Profiles whose username or skills contain ``search``, by username."""
        ...


class ProfileWriter(Protocol):
    async def upsert(
        self,
        user_id: int,
        bio: str | None,
        skills: str | None,
        github_link: str | None,
        now: datetime,
    ) -> bool:
        """Return True when the profile was created rather than updated."""
        ...
