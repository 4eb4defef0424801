from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class Profile:
    """Developer profile; username and image come from the owning user."""

    user_id: int
    username: str
    profile_image: str | None
    bio: str | None
    skills: str | None
    github_link: str | None
    updated_at: datetime
