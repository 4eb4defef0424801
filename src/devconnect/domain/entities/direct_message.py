from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class DirectMessage:
    id: int
    sender_id: int
    sender_username: str
    recipient_id: int
    text: str
    sent_at: datetime
