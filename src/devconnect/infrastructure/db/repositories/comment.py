from __future__ import annotations

from datetime import datetime

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from devconnect.domain.entities.comment import Comment
from devconnect.infrastructure.db.mappers import comment as mapper
from devconnect.infrastructure.db.models.comment import CommentModel


class CommentReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, comment_id: int) -> Comment | None:
        result = await self._session.get(CommentModel, comment_id)
        return mapper.model_to_entity(result) if result else None

    async def list_for_post(self, post_id: int) -> list[Comment]:
        stmt = (
            select(CommentModel)
            .where(CommentModel.post_id == post_id)
            .order_by(CommentModel.created_at.asc(), CommentModel.id.asc())
        )
        result = await self._session.execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().all()]

    async def count_for_post(self, post_id: int) -> int:
        stmt = (
            select(func.count())
            .select_from(CommentModel)
            .where(CommentModel.post_id == post_id)
        )
        result = await self._session.execute(stmt)
        return int(result.scalar_one())


class CommentWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(
        self, post_id: int, user_id: int, content: str, now: datetime
    ) -> Comment:
        model = CommentModel(post_id=post_id, user_id=user_id, content=content, created_at=now)
        self._session.add(model)
        await self._session.flush()
        await self._session.refresh(model, attribute_names=["author"])
        return mapper.model_to_entity(model)

    async def delete(self, comment_id: int) -> None:
        await self._session.execute(delete(CommentModel).where(CommentModel.id == comment_id))

    async def delete_for_post(self, post_id: int) -> None:
        await self._session.execute(delete(CommentModel).where(CommentModel.post_id == post_id))
