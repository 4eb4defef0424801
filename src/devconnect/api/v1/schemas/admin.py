from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class UserResponse(BaseModel):
    id: int
    username: str
    email: str
    role: str
    is_banned: bool
    is_muted: bool
    profile_image: str | None = None
    created_at: datetime

    model_config = {"from_attributes": True}


class ClearChatResponse(BaseModel):
    deleted: int
