from __future__ import annotations

from datetime import datetime

from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from devconnect.domain.entities.direct_message import DirectMessage
from devconnect.infrastructure.db.mappers import direct_message as mapper
from devconnect.infrastructure.db.models.direct_message import DirectMessageModel


class DirectMessageReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_between(
        self, user_a: int, user_b: int, *, limit: int = 100
    ) -> list[DirectMessage]:
        m = DirectMessageModel
        stmt = (
            select(m)
            .where(
                or_(
                    and_(m.sender_id == user_a, m.recipient_id == user_b),
                    and_(m.sender_id == user_b, m.recipient_id == user_a),
                )
            )
            .order_by(m.created_at.desc(), m.id.desc())
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        rows = [mapper.model_to_entity(r) for r in result.scalars().all()]
        rows.reverse()
        return rows


class DirectMessageWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(
        self,
        sender_id: int,
        recipient_id: int,
        text: str,
        sent_at: datetime,
    ) -> DirectMessage:
        model = DirectMessageModel(
            sender_id=sender_id,
            recipient_id=recipient_id,
            message=text,
            created_at=sent_at,
        )
        self._session.add(model)
        await self._session.flush()
        await self._session.refresh(model, attribute_names=["sender"])
        return mapper.model_to_entity(model)
