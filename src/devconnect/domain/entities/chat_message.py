from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class ChatMessage:
    id: int
    author_id: int
    author_username: str
    text: str
    time: str | None
    sent_at: datetime
    author_profile_image: str | None = None
