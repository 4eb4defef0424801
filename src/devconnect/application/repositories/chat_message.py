from __future__ import annotations

from datetime import datetime
from typing import Protocol

from devconnect.domain.entities.chat_message import ChatMessage


class ChatMessageReader(Protocol):
    async def list_recent(self, limit: int) -> list[ChatMessage]:
        """Most recent messages, returned ascending by sent_at."""
        ...

    async def get_by_id(self, message_id: int) -> ChatMessage | None: ...


class ChatMessageWriter(Protocol):
    async def create(
        self,
        author_id: int,
        text: str,
        time: str | None,
        sent_at: datetime,
    ) -> ChatMessage: ...

    async def delete(self, message_id: int) -> bool:
        """Return False when no row matched at delete time."""
        ...

    async def delete_all(self) -> int: ...
