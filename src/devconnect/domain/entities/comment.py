from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class Comment:
    id: int
    post_id: int
    user_id: int
    username: str
    content: str
    created_at: datetime
