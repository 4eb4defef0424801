from __future__ import annotations

from datetime import datetime

from sqlalchemy import delete, exists, false, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from devconnect.application.exceptions import NotFoundError
from devconnect.domain.entities.post import FeedPost, Post
from devconnect.infrastructure.db.mappers import post as mapper
from devconnect.infrastructure.db.models.comment import CommentModel
from devconnect.infrastructure.db.models.like import LikeModel
from devconnect.infrastructure.db.models.post import PostModel


class PostReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, post_id: int) -> Post | None:
        result = await self._session.get(PostModel, post_id, populate_existing=True)
        return mapper.model_to_entity(result) if result else None

    async def list_feed(
        self, viewer_id: int | None, *, offset: int = 0, limit: int = 20
    ) -> list[FeedPost]:
        like_counts = (
            select(LikeModel.post_id, func.count().label("cnt"))
            .group_by(LikeModel.post_id)
            .subquery()
        )
        comment_counts = (
            select(CommentModel.post_id, func.count().label("cnt"))
            .group_by(CommentModel.post_id)
            .subquery()
        )
        if viewer_id is None:
            is_liked = false()
        else:
            is_liked = exists().where(
                LikeModel.post_id == PostModel.id,
                LikeModel.user_id == viewer_id,
            )
        stmt = (
            select(
                PostModel,
                func.coalesce(like_counts.c.cnt, 0),
                func.coalesce(comment_counts.c.cnt, 0),
                is_liked.label("is_liked"),
            )
            .outerjoin(like_counts, like_counts.c.post_id == PostModel.id)
            .outerjoin(comment_counts, comment_counts.c.post_id == PostModel.id)
            .order_by(PostModel.created_at.desc(), PostModel.id.desc())
            .offset(offset)
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return [
            FeedPost(
                post=mapper.model_to_entity(model),
                like_count=int(likes),
                comment_count=int(comments),
                is_liked=bool(liked),
            )
            for model, likes, comments, liked in result.all()
        ]


class PostWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def lock(self, post_id: int) -> Post | None:
        stmt = select(PostModel.id).where(PostModel.id == post_id).with_for_update()
        result = await self._session.execute(stmt)
        if result.scalar_one_or_none() is None:
            return None
        model = await self._session.get(PostModel, post_id, populate_existing=True)
        return mapper.model_to_entity(model) if model else None

    async def create(self, user_id: int, content: str, now: datetime) -> Post:
        model = PostModel(user_id=user_id, content=content, created_at=now, updated_at=now)
        self._session.add(model)
        await self._session.flush()
        await self._session.refresh(model, attribute_names=["author"])
        return mapper.model_to_entity(model)

    async def update(self, post_id: int, content: str, now: datetime) -> Post:
        model = await self._session.get(PostModel, post_id)
        if model is None:
            raise NotFoundError("Post not found")
        model.content = content
        model.updated_at = now
        await self._session.flush()
        return mapper.model_to_entity(model)

    async def delete(self, post_id: int) -> None:
        await self._session.execute(delete(PostModel).where(PostModel.id == post_id))
