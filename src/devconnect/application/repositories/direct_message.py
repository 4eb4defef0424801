from __future__ import annotations

from datetime import datetime
from typing import Protocol

from devconnect.domain.entities.direct_message import DirectMessage


class DirectMessageReader(Protocol):
    async def list_between(
        self, user_a: int, user_b: int, *, limit: int = 100
    ) -> list[DirectMessage]: ...


class DirectMessageWriter(Protocol):
    async def create(
        self,
        sender_id: int,
        recipient_id: int,
        text: str,
        sent_at: datetime,
    ) -> DirectMessage: ...
