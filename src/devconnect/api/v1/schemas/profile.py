from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class ProfileRequest(BaseModel):
    bio: str | None = None
    skills: str | None = None
    github_link: str | None = None
    # Omitted keeps the current image; "" clears it.
    profile_image: str | None = None


class ProfileResponse(BaseModel):
    user_id: int
    username: str
    profile_image: str | None = None
    bio: str | None = None
    skills: str | None = None
    github_link: str | None = None
    updated_at: datetime

    model_config = {"from_attributes": True}
