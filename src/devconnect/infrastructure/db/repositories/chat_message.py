from __future__ import annotations

from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from devconnect.domain.entities.chat_message import ChatMessage
from devconnect.infrastructure.db.mappers import chat_message as mapper
from devconnect.infrastructure.db.models.chat_message import ChatMessageModel


class ChatMessageReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_recent(self, limit: int) -> list[ChatMessage]:
        stmt = (
            select(ChatMessageModel)
            .order_by(ChatMessageModel.created_at.desc(), ChatMessageModel.id.desc())
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        rows = [mapper.model_to_entity(m) for m in result.scalars().all()]
        rows.reverse()
        return rows

    async def get_by_id(self, message_id: int) -> ChatMessage | None:
        result = await self._session.get(ChatMessageModel, message_id)
        return mapper.model_to_entity(result) if result else None


class ChatMessageWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(
        self,
        author_id: int,
        text: str,
        time: str | None,
        sent_at: datetime,
    ) -> ChatMessage:
        model = ChatMessageModel(user_id=author_id, text=text, time=time, created_at=sent_at)
        self._session.add(model)
        await self._session.flush()
        await self._session.refresh(model, attribute_names=["author"])
        return mapper.model_to_entity(model)

    async def delete(self, message_id: int) -> bool:
        stmt = (
            delete(ChatMessageModel)
            .where(ChatMessageModel.id == message_id)
            .returning(ChatMessageModel.id)
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def delete_all(self) -> int:
        result = await self._session.execute(delete(ChatMessageModel))
        return result.rowcount or 0
