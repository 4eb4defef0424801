from __future__ import annotations

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from devconnect.domain.entities.user import User
from devconnect.infrastructure.db.mappers import user as mapper
from devconnect.infrastructure.db.models.user import UserModel


class UserReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, user_id: int) -> User | None:
        # populate_existing: role/ban/mute must never come from the identity map
        result = await self._session.get(UserModel, user_id, populate_existing=True)
        return mapper.model_to_entity(result) if result else None

    async def list_all(self) -> list[User]:
        stmt = select(UserModel).order_by(UserModel.id.asc())
        result = await self._session.execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().all()]


class UserWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def _update(self, user_id: int, **values: object) -> bool:
        stmt = (
            update(UserModel)
            .where(UserModel.id == user_id)
            .values(**values)
            .returning(UserModel.id)
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def set_banned(self, user_id: int, banned: bool) -> bool:
        return await self._update(user_id, is_banned=banned)

    async def set_muted(self, user_id: int, muted: bool) -> bool:
        return await self._update(user_id, is_muted=muted)

    async def set_role(self, user_id: int, role: str) -> bool:
        return await self._update(user_id, role=role)

    async def set_profile_image(self, user_id: int, url: str | None) -> bool:
        return await self._update(user_id, profile_image=url)
