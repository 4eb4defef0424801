from __future__ import annotations

from typing import Protocol, Self

from devconnect.application.repositories.chat_message import (
    ChatMessageReader,
    ChatMessageWriter,
)
from devconnect.application.repositories.comment import CommentReader, CommentWriter
from devconnect.application.repositories.direct_message import (
    DirectMessageReader,
    DirectMessageWriter,
)
from devconnect.application.repositories.like import LikeReader, LikeWriter
from devconnect.application.repositories.post import PostReader, PostWriter
from devconnect.application.repositories.profile import ProfileReader, ProfileWriter
from devconnect.application.repositories.user import UserReader, UserWriter


class UnitOfWork(Protocol):
    users: UserReader
    users_w: UserWriter
    chat: ChatMessageReader
    chat_w: ChatMessageWriter
    direct_messages: DirectMessageReader
    direct_messages_w: DirectMessageWriter
    posts: PostReader
    posts_w: PostWriter
    likes: LikeReader
    likes_w: LikeWriter
    comments: CommentReader
    comments_w: CommentWriter
    profiles: ProfileReader
    profiles_w: ProfileWriter

    async def commit(self) -> None: ...
    async def rollback(self) -> None: ...
    async def flush(self) -> None: ...
    async def ping(self) -> None: ...
    async def __aenter__(self) -> Self: ...
    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None: ...
