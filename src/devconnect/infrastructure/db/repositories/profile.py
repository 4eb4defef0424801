from __future__ import annotations

from datetime import datetime

from sqlalchemy import literal_column, or_, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from devconnect.domain.entities.profile import Profile
from devconnect.infrastructure.db.mappers import profile as mapper
from devconnect.infrastructure.db.models.profile import ProfileModel
from devconnect.infrastructure.db.models.user import UserModel


class ProfileReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_for_user(self, user_id: int) -> Profile | None:
        result = await self._session.get(ProfileModel, user_id, populate_existing=True)
        return mapper.model_to_entity(result) if result else None

    async def list_profiles(
        self, search: str | None, *, offset: int = 0, limit: int = 20
    ) -> list[Profile]:
        stmt = select(ProfileModel).join(UserModel, UserModel.id == ProfileModel.user_id)
        if search:
            stmt = stmt.where(
                or_(
                    UserModel.username.icontains(search, autoescape=True),
                    ProfileModel.skills.icontains(search, autoescape=True),
                )
            )
        stmt = stmt.order_by(UserModel.username.asc()).offset(offset).limit(limit)
        result = await self._session.execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().unique().all()]


class ProfileWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def upsert(
        self,
        user_id: int,
        bio: str | None,
        skills: str | None,
        github_link: str | None,
        now: datetime,
    ) -> bool:
        values = {"bio": bio, "skills": skills, "github_link": github_link, "updated_at": now}
        stmt = (
            pg_insert(ProfileModel)
            .values(user_id=user_id, **values)
            .on_conflict_do_update(index_elements=[ProfileModel.user_id], set_=values)
            # xmax is 0 only on a freshly inserted row version.
            .returning(literal_column("(xmax = 0)"))
        )
        result = await self._session.execute(stmt)
        return bool(result.scalar_one())
