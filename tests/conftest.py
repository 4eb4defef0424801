"""Shared test fixtures."""
from __future__ import annotations

import asyncio
import json
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, AsyncIterator

import pytest

from devconnect.application.dto.claims import TokenClaims
from devconnect.application.dto.principal import Principal
from devconnect.application.exceptions import InvalidCredentialError
from devconnect.domain.entities.chat_message import ChatMessage
from devconnect.domain.entities.comment import Comment
from devconnect.domain.entities.direct_message import DirectMessage
from devconnect.domain.entities.post import FeedPost, Post
from devconnect.domain.entities.profile import Profile
from devconnect.domain.entities.user import User
from devconnect.domain.value_objects.enums import Role
from devconnect.infrastructure.ws.protocol import WsInbound
from devconnect.realtime.hub import RealtimeHub
from devconnect.realtime.session import ChatSession

_EPOCH = datetime(2024, 1, 1, tzinfo=timezone.utc)


def make_user(
    user_id: int,
    username: str | None = None,
    *,
    role: str = Role.USER,
    banned: bool = False,
    muted: bool = False,
) -> User:
    return User(
        id=user_id,
        username=username or f"user{user_id}",
        email=f"user{user_id}@example.com",
        role=str(role),
        is_banned=banned,
        is_muted=muted,
        profile_image=None,
        created_at=_EPOCH,
    )


@pytest.fixture
def user_principal() -> Principal:
    return Principal(id=42, username="alice")


@pytest.fixture
def admin_principal() -> Principal:
    return Principal(id=1, username="root", role=Role.ADMIN)


class FakeStore:
    """In-memory tables shared by every FakeUoW opened against it.

    Post row locks are real ``asyncio.Lock`` objects held by a unit of work until
    commit, rollback or exit, so concurrent units of work interleave the way
    ``SELECT ... FOR UPDATE`` transactions do.
    """

    def __init__(self) -> None:
        self.users: dict[int, User] = {}
        self.chat: dict[int, ChatMessage] = {}
        self.direct_messages: list[DirectMessage] = []
        self.posts: dict[int, Post] = {}
        self.likes: set[tuple[int, int]] = set()
        self.comments: dict[int, Comment] = {}
        # user_id -> (bio, skills, github_link, updated_at)
        self.profiles: dict[int, tuple[str | None, str | None, str | None, datetime]] = {}
        self.post_locks: dict[int, asyncio.Lock] = {}
        self.commits = 0
        self._seq = 0
        self._tick = 0

    def next_id(self) -> int:
        self._seq += 1
        return self._seq

    def next_time(self) -> datetime:
        # Strictly increasing timestamps keep ordering assertions deterministic.
        self._tick += 1
        return _EPOCH + timedelta(seconds=self._tick)

    def add_user(self, user_id: int, username: str | None = None, **kwargs: Any) -> User:
        user = make_user(user_id, username, **kwargs)
        self.users[user_id] = user
        return user

    def update_user(self, user_id: int, **changes: Any) -> None:
        user = self.users[user_id]
        values = {name: getattr(user, name) for name in User.__dataclass_fields__}
        values.update(changes)
        self.users[user_id] = User(**values)

    def add_post(self, user_id: int, content: str = "hello world") -> Post:
        now = self.next_time()
        post = Post(
            id=self.next_id(),
            user_id=user_id,
            username=self.users[user_id].username,
            content=content,
            created_at=now,
            updated_at=now,
        )
        self.posts[post.id] = post
        return post

    def add_chat(self, author_id: int, text: str) -> ChatMessage:
        msg = ChatMessage(
            id=self.next_id(),
            author_id=author_id,
            author_username=self.users[author_id].username,
            text=text,
            time=None,
            sent_at=self.next_time(),
        )
        self.chat[msg.id] = msg
        return msg


@dataclass
class FakeUsers:
    _store: FakeStore

    async def get_by_id(self, user_id: int) -> User | None:
        await asyncio.sleep(0)
        return self._store.users.get(user_id)

    async def list_all(self) -> list[User]:
        return sorted(self._store.users.values(), key=lambda u: u.id)

    async def set_banned(self, user_id: int, banned: bool) -> bool:
        if user_id not in self._store.users:
            return False
        self._store.update_user(user_id, is_banned=banned)
        return True

    async def set_muted(self, user_id: int, muted: bool) -> bool:
        if user_id not in self._store.users:
            return False
        self._store.update_user(user_id, is_muted=muted)
        return True

    async def set_role(self, user_id: int, role: str) -> bool:
        if user_id not in self._store.users:
            return False
        self._store.update_user(user_id, role=role)
        return True

    async def set_profile_image(self, user_id: int, url: str | None) -> bool:
        if user_id not in self._store.users:
            return False
        self._store.update_user(user_id, profile_image=url)
        return True


@dataclass
class FakeChat:
    _store: FakeStore

    async def list_recent(self, limit: int) -> list[ChatMessage]:
        await asyncio.sleep(0)
        ordered = sorted(self._store.chat.values(), key=lambda m: m.sent_at)
        return ordered[-limit:] if limit else []

    async def get_by_id(self, message_id: int) -> ChatMessage | None:
        return self._store.chat.get(message_id)

    async def create(
        self, author_id: int, text: str, time: str | None, sent_at: datetime,
    ) -> ChatMessage:
        await asyncio.sleep(0)
        msg = ChatMessage(
            id=self._store.next_id(),
            author_id=author_id,
            author_username=self._store.users[author_id].username,
            text=text,
            time=time,
            author_profile_image=self._store.users[author_id].profile_image,
            sent_at=self._store.next_time(),
        )
        self._store.chat[msg.id] = msg
        return msg

    async def delete(self, message_id: int) -> bool:
        await asyncio.sleep(0)
        return self._store.chat.pop(message_id, None) is not None

    async def delete_all(self) -> int:
        await asyncio.sleep(0)
        deleted = len(self._store.chat)
        self._store.chat.clear()
        return deleted


@dataclass
class FakeDirectMessages:
    _store: FakeStore

    async def list_between(self, user_a: int, user_b: int, *, limit: int = 100) -> list[DirectMessage]:
        pair = {user_a, user_b}
        found = [m for m in self._store.direct_messages if {m.sender_id, m.recipient_id} == pair]
        return found[-limit:]

    async def create(
        self, sender_id: int, recipient_id: int, text: str, sent_at: datetime,
    ) -> DirectMessage:
        dm = DirectMessage(
            id=self._store.next_id(),
            sender_id=sender_id,
            sender_username=self._store.users[sender_id].username,
            recipient_id=recipient_id,
            text=text,
            sent_at=self._store.next_time(),
        )
        self._store.direct_messages.append(dm)
        return dm


@dataclass
class FakePosts:
    _store: FakeStore
    _uow: FakeUoW

    async def get_by_id(self, post_id: int) -> Post | None:
        return self._store.posts.get(post_id)

    async def list_feed(
        self, viewer_id: int | None, *, offset: int = 0, limit: int = 20,
    ) -> list[FeedPost]:
        ordered = sorted(self._store.posts.values(), key=lambda p: p.created_at, reverse=True)
        return [
            FeedPost(
                post=p,
                like_count=sum(1 for pid, _ in self._store.likes if pid == p.id),
                comment_count=sum(1 for c in self._store.comments.values() if c.post_id == p.id),
                is_liked=viewer_id is not None and (p.id, viewer_id) in self._store.likes,
            )
            for p in ordered[offset:offset + limit]
        ]

    async def lock(self, post_id: int) -> Post | None:
        if post_id not in self._store.posts:
            return None
        await self._uow.acquire(post_id)
        return self._store.posts.get(post_id)

    async def create(self, user_id: int, content: str, now: datetime) -> Post:
        post = self._store.add_post(user_id, content)
        return post

    async def update(self, post_id: int, content: str, now: datetime) -> Post:
        old = self._store.posts[post_id]
        post = Post(
            id=old.id,
            user_id=old.user_id,
            username=old.username,
            content=content,
            created_at=old.created_at,
            updated_at=self._store.next_time(),
        )
        self._store.posts[post_id] = post
        return post

    async def delete(self, post_id: int) -> None:
        self._store.posts.pop(post_id, None)


@dataclass
class FakeLikes:
    _store: FakeStore

    async def exists(self, post_id: int, user_id: int) -> bool:
        await asyncio.sleep(0)
        return (post_id, user_id) in self._store.likes

    async def count_for_post(self, post_id: int) -> int:
        await asyncio.sleep(0)
        return sum(1 for pid, _ in self._store.likes if pid == post_id)

    async def add(self, post_id: int, user_id: int) -> None:
        await asyncio.sleep(0)
        if (post_id, user_id) in self._store.likes:
            raise AssertionError("unique (post_id, user_id) violated")
        self._store.likes.add((post_id, user_id))

    async def remove(self, post_id: int, user_id: int) -> None:
        await asyncio.sleep(0)
        self._store.likes.discard((post_id, user_id))

    async def delete_for_post(self, post_id: int) -> None:
        self._store.likes = {(p, u) for p, u in self._store.likes if p != post_id}


@dataclass
class FakeComments:
    _store: FakeStore

    async def get_by_id(self, comment_id: int) -> Comment | None:
        return self._store.comments.get(comment_id)

    async def list_for_post(self, post_id: int) -> list[Comment]:
        return sorted(
            (c for c in self._store.comments.values() if c.post_id == post_id),
            key=lambda c: c.created_at,
        )

    async def count_for_post(self, post_id: int) -> int:
        await asyncio.sleep(0)
        return sum(1 for c in self._store.comments.values() if c.post_id == post_id)

    async def create(self, post_id: int, user_id: int, content: str, now: datetime) -> Comment:
        await asyncio.sleep(0)
        comment = Comment(
            id=self._store.next_id(),
            post_id=post_id,
            user_id=user_id,
            username=self._store.users[user_id].username,
            content=content,
            created_at=self._store.next_time(),
        )
        self._store.comments[comment.id] = comment
        return comment

    async def delete(self, comment_id: int) -> None:
        await asyncio.sleep(0)
        self._store.comments.pop(comment_id, None)

    async def delete_for_post(self, post_id: int) -> None:
        for cid in [c.id for c in self._store.comments.values() if c.post_id == post_id]:
            del self._store.comments[cid]


@dataclass
class FakeProfiles:
    _store: FakeStore

    def _entity(self, user_id: int) -> Profile:
        bio, skills, github_link, updated_at = self._store.profiles[user_id]
        user = self._store.users[user_id]
        return Profile(
            user_id=user_id,
            username=user.username,
            profile_image=user.profile_image,
            bio=bio,
            skills=skills,
            github_link=github_link,
            updated_at=updated_at,
        )

    async def get_for_user(self, user_id: int) -> Profile | None:
        if user_id not in self._store.profiles:
            return None
        return self._entity(user_id)

    async def list_profiles(
        self, search: str | None, *, offset: int = 0, limit: int = 20
    ) -> list[Profile]:
        profiles = [self._entity(uid) for uid in self._store.profiles]
        if search:
            needle = search.lower()
            profiles = [
                p for p in profiles
                if needle in p.username.lower() or needle in (p.skills or "").lower()
            ]
        profiles.sort(key=lambda p: p.username)
        return profiles[offset:offset + limit]

    async def upsert(
        self,
        user_id: int,
        bio: str | None,
        skills: str | None,
        github_link: str | None,
        now: datetime,
    ) -> bool:
        await asyncio.sleep(0)
        created = user_id not in self._store.profiles
        self._store.profiles[user_id] = (bio, skills, github_link, now)
        return created

class FakeUoW:
    """In-memory UoW for unit tests."""

    def __init__(self, store: FakeStore | None = None) -> None:
        self.store = store or FakeStore()
        self.users = self.users_w = FakeUsers(self.store)
        self.chat = self.chat_w = FakeChat(self.store)
        self.direct_messages = self.direct_messages_w = FakeDirectMessages(self.store)
        self.posts = self.posts_w = FakePosts(self.store, self)
        self.likes = self.likes_w = FakeLikes(self.store)
        self.comments = self.comments_w = FakeComments(self.store)
        self.profiles = self.profiles_w = FakeProfiles(self.store)
        self._held: set[int] = set()
        self._committed = False

    async def acquire(self, post_id: int) -> None:
        if post_id in self._held:
            return
        lock = self.store.post_locks.setdefault(post_id, asyncio.Lock())
        await lock.acquire()
        self._held.add(post_id)

    def release(self) -> None:
        for post_id in self._held:
            self.store.post_locks[post_id].release()
        self._held.clear()

    async def flush(self) -> None:
        pass

    async def ping(self) -> None:
        pass

    async def commit(self) -> None:
        self._committed = True
        self.store.commits += 1
        self.release()

    async def rollback(self) -> None:
        self.release()

    async def __aenter__(self) -> FakeUoW:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        self.release()


def fake_uow_factory(store: FakeStore):
    @asynccontextmanager
    async def _open() -> AsyncIterator[FakeUoW]:
        async with FakeUoW(store) as uow:
            yield uow

    return _open


class FakeVerifier:
    """Accepts ``token-<user id>``; anything else is an invalid credential."""

    def __init__(self, delay: float = 0.0) -> None:
        self.delay = delay

    async def verify(self, token: str) -> TokenClaims:
        if self.delay:
            await asyncio.sleep(self.delay)
        prefix, _, raw = token.partition("-")
        if prefix != "token" or not raw.isdigit():
            raise InvalidCredentialError("Token is not valid")
        return TokenClaims(subject_id=int(raw))


@dataclass
class FakeTransport:
    """Records what the writer task pushes to the socket."""

    sent: list[str] = field(default_factory=list)
    close_code: int | None = None
    close_reason: str | None = None
    fail: bool = False
    gate: asyncio.Event | None = None

    async def send_text(self, data: str) -> None:
        if self.gate is not None:
            await self.gate.wait()
        if self.fail:
            raise ConnectionResetError("socket gone")
        self.sent.append(data)

    async def close(self, code: int = 1000, reason: str | None = None) -> None:
        self.close_code = code
        self.close_reason = reason

    @property
    def events(self) -> list[dict[str, Any]]:
        return [json.loads(raw) for raw in self.sent]

    def of_type(self, event_type: str) -> list[Any]:
        return [e["data"] for e in self.events if e["type"] == event_type]

    @property
    def types(self) -> list[str]:
        return [e["type"] for e in self.events]


@pytest.fixture
def store() -> FakeStore:
    s = FakeStore()
    s.add_user(1, "root", role=Role.ADMIN)
    s.add_user(42, "alice")
    s.add_user(43, "bob")
    s.add_user(44, "carol")
    return s


@pytest.fixture
def hub(store) -> RealtimeHub:
    return RealtimeHub(uow_factory=fake_uow_factory(store), verifier=FakeVerifier())


async def open_session(hub: RealtimeHub, user_id: int) -> tuple[ChatSession, FakeTransport]:
    """Connect and authenticate a fake client, then flush its welcome events."""
    transport = FakeTransport()
    connection = hub.open_connection(transport)
    session = ChatSession(connection, hub)
    assert await session.handshake(f"token-{user_id}")
    await hub.drain()
    return session, transport


async def send(session: ChatSession, event_type: str, data: Any = None) -> None:
    await session.handle(WsInbound(type=event_type, data=data))
    await session.hub.drain()
