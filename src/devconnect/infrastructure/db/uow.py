from __future__ import annotations

from types import TracebackType
from typing import Self

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from devconnect.infrastructure.db.repositories.chat_message import (
    ChatMessageReaderRepo,
    ChatMessageWriterRepo,
)
from devconnect.infrastructure.db.repositories.comment import (
    CommentReaderRepo,
    CommentWriterRepo,
)
from devconnect.infrastructure.db.repositories.direct_message import (
    DirectMessageReaderRepo,
    DirectMessageWriterRepo,
)
from devconnect.infrastructure.db.repositories.like import LikeReaderRepo, LikeWriterRepo
from devconnect.infrastructure.db.repositories.post import PostReaderRepo, PostWriterRepo
from devconnect.infrastructure.db.repositories.profile import (
    ProfileReaderRepo,
    ProfileWriterRepo,
)
from devconnect.infrastructure.db.repositories.user import UserReaderRepo, UserWriterRepo


class SqlAlchemyUoW:
    """Concrete Unit-of-Work backed by a single AsyncSession."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self.users = UserReaderRepo(session)
        self.users_w = UserWriterRepo(session)
        self.chat = ChatMessageReaderRepo(session)
        self.chat_w = ChatMessageWriterRepo(session)
        self.direct_messages = DirectMessageReaderRepo(session)
        self.direct_messages_w = DirectMessageWriterRepo(session)
        self.posts = PostReaderRepo(session)
        self.posts_w = PostWriterRepo(session)
        self.likes = LikeReaderRepo(session)
        self.likes_w = LikeWriterRepo(session)
        self.comments = CommentReaderRepo(session)
        self.comments_w = CommentWriterRepo(session)
        self.profiles = ProfileReaderRepo(session)
        self.profiles_w = ProfileWriterRepo(session)

    async def flush(self) -> None:
        await self._session.flush()

    async def ping(self) -> None:
        await self._session.execute(text("SELECT 1"))

    async def commit(self) -> None:
        await self._session.commit()

    async def rollback(self) -> None:
        await self._session.rollback()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if exc_type is not None:
            await self.rollback()
