from __future__ import annotations

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from devconnect.infrastructure.db.models.like import LikeModel


class LikeReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def exists(self, post_id: int, user_id: int) -> bool:
        stmt = (
            select(LikeModel.id)
            .where(LikeModel.post_id == post_id, LikeModel.user_id == user_id)
            .limit(1)
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def count_for_post(self, post_id: int) -> int:
        stmt = select(func.count()).select_from(LikeModel).where(LikeModel.post_id == post_id)
        result = await self._session.execute(stmt)
        return int(result.scalar_one())


class LikeWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, post_id: int, user_id: int) -> None:
        self._session.add(LikeModel(post_id=post_id, user_id=user_id))
        await self._session.flush()

    async def remove(self, post_id: int, user_id: int) -> None:
        await self._session.execute(
            delete(LikeModel).where(LikeModel.post_id == post_id, LikeModel.user_id == user_id)
        )

    async def delete_for_post(self, post_id: int) -> None:
        await self._session.execute(delete(LikeModel).where(LikeModel.post_id == post_id))
