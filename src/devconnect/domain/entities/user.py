from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class User:
    id: int
    username: str
    email: str
    role: str
    is_banned: bool
    is_muted: bool
    profile_image: str | None
    created_at: datetime
