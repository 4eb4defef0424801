from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager

import pytest
from sqlalchemy.exc import OperationalError

from devconnect.application.exceptions import BannedError
from devconnect.domain.value_objects.enums import LifecycleState
from devconnect.infrastructure.ws.protocol import MAX_FRAME_BYTES, WsInbound
from devconnect.realtime.commands import COMMANDS
from devconnect.realtime.hub import (
    CLOSE_AUTH_FAILED,
    CLOSE_BANNED,
    CLOSE_HANDSHAKE_TIMEOUT,
    RealtimeHub,
)
from devconnect.realtime.session import CLOSE_INTERNAL_ERROR, ChatSession
from tests.conftest import FakeTransport, FakeUoW, FakeVerifier, fake_uow_factory, open_session, send


async def _failed_handshake(hub: RealtimeHub, credential: str | None, **kwargs) -> FakeTransport:
    transport = FakeTransport()
    connection = hub.open_connection(transport)
    session = ChatSession(connection, hub, **kwargs)
    assert await session.handshake(credential) is False
    await connection.wait_closed()
    assert connection.id not in hub.registry
    return transport


@pytest.mark.asyncio
async def test_handshake_replays_history_and_announces_presence(hub, store):
    first = store.add_chat(43, "first")
    second = store.add_chat(44, "second")

    _, transport = await open_session(hub, 42)

    [history] = transport.of_type("chatHistory")
    assert [m["id"] for m in history] == [first.id, second.id]
    assert history[0]["user"] == "bob"
    assert transport.of_type("activeUsers")[-1] == [{"userId": 42, "username": "alice"}]


@pytest.mark.asyncio
async def test_history_is_sent_only_to_the_new_connection(hub, store):
    store.add_chat(43, "hello")
    _, bob_t = await open_session(hub, 43)

    await open_session(hub, 42)

    assert len(bob_t.of_type("chatHistory")) == 1
    assert [u["userId"] for u in bob_t.of_type("activeUsers")[-1]] == [43, 42]


@pytest.mark.asyncio
async def test_invalid_token_gets_error_and_auth_close(hub):
    transport = await _failed_handshake(hub, "garbage")

    assert transport.types == ["error"]
    assert transport.of_type("error")[0]["code"] == "invalid_credential"
    assert transport.close_code == CLOSE_AUTH_FAILED


@pytest.mark.asyncio
async def test_missing_token_is_rejected(hub):
    transport = await _failed_handshake(hub, None)
    assert transport.close_code == CLOSE_AUTH_FAILED


@pytest.mark.asyncio
async def test_unknown_account_is_rejected(hub):
    transport = await _failed_handshake(hub, "token-999")
    assert transport.of_type("error")[0]["code"] == "principal_not_found"
    assert transport.close_code == CLOSE_AUTH_FAILED


@pytest.mark.asyncio
async def test_banned_account_cannot_connect(hub, store):
    store.update_user(42, is_banned=True)

    transport = await _failed_handshake(hub, "token-42")

    assert transport.of_type("error")[0]["code"] == "banned"
    assert transport.close_code == CLOSE_BANNED
    assert len(hub.registry) == 0


@pytest.mark.asyncio
async def test_handshake_timeout_closes_connection(store):
    hub = RealtimeHub(uow_factory=fake_uow_factory(store), verifier=FakeVerifier(delay=1.0))

    transport = await _failed_handshake(hub, "token-42", handshake_timeout=0.01)

    assert transport.close_code == CLOSE_HANDSHAKE_TIMEOUT


@pytest.mark.asyncio
async def test_history_failure_during_admission_reports_and_closes(store):
    class _DownChat:
        async def list_recent(self, limit: int):
            raise OperationalError("SELECT chat_messages", {}, ConnectionRefusedError("db down"))

    @asynccontextmanager
    async def _open():
        async with FakeUoW(store) as uow:
            uow.chat = _DownChat()
            yield uow

    hub = RealtimeHub(uow_factory=_open, verifier=FakeVerifier())

    transport = await _failed_handshake(hub, "token-42")

    assert transport.of_type("error")[-1]["code"] == "internal_error"
    assert transport.close_code == CLOSE_INTERNAL_ERROR


@pytest.mark.asyncio
async def test_commands_before_authentication_are_rejected(hub, store):
    transport = FakeTransport()
    connection = hub.open_connection(transport)
    session = ChatSession(connection, hub)

    await session.handle(WsInbound(type="chatMessage", data={"text": "sneaky"}))
    await connection.drain()

    assert connection.state == LifecycleState.CONNECTING
    assert transport.of_type("error")[0]["code"] == "not_authenticated"
    assert store.chat == {}
    await connection.stop()


@pytest.mark.asyncio
async def test_malformed_and_unknown_commands_keep_session_open(hub):
    alice, transport = await open_session(hub, 42)

    await alice.handle_raw("{not json")
    await alice.handle_raw('{"type": "launchRockets"}')
    await hub.drain()

    codes = [e["code"] for e in transport.of_type("error")]
    assert codes == ["invalid_payload", "unknown_type"]
    assert alice.is_open


@pytest.mark.asyncio
async def test_chat_message_is_persisted_and_broadcast_to_everyone(hub, store):
    alice, alice_t = await open_session(hub, 42)
    _, bob_t = await open_session(hub, 43)

    await send(alice, "chatMessage", {"text": "  hello all ", "time": "10:42"})

    [msg] = store.chat.values()
    for transport in (alice_t, bob_t):
        [event] = transport.of_type("chatMessage")
        assert event["id"] == msg.id
        assert event["text"] == "hello all"
        assert event["user"] == "alice"
        assert event["time"] == "10:42"


@pytest.mark.asyncio
async def test_empty_chat_message_is_rejected(hub, store):
    alice, transport = await open_session(hub, 42)

    await send(alice, "chatMessage", {"text": "   "})

    assert transport.of_type("error")[0]["code"] == "invalid_data"
    assert store.chat == {}


@pytest.mark.asyncio
async def test_chat_message_with_object_time_is_rejected(hub, store):
    alice, transport = await open_session(hub, 42)

    await send(alice, "chatMessage", {"text": "x", "time": {"a": 1}})

    assert transport.of_type("error")[0]["code"] == "invalid_data"
    assert transport.of_type("chatMessage") == []
    assert store.chat == {}


@pytest.mark.asyncio
async def test_mute_suppresses_sending_but_not_receiving(hub, store):
    alice, alice_t = await open_session(hub, 42)
    bob, bob_t = await open_session(hub, 43)
    store.update_user(42, is_muted=True)

    await send(alice, "chatMessage", {"text": "can you hear me"})
    await send(alice, "typing", {"username": "alice"})
    await send(bob, "chatMessage", {"text": "hello alice"})

    assert alice_t.of_type("error")[0]["code"] == "muted"
    assert [m["text"] for m in alice_t.of_type("chatMessage")] == ["hello alice"]
    assert [m["text"] for m in bob_t.of_type("chatMessage")] == ["hello alice"]
    assert bob_t.of_type("userTyping") == []
    assert alice.is_open


@pytest.mark.asyncio
async def test_ban_takes_effect_on_the_next_command(hub, store):
    alice, alice_t = await open_session(hub, 42)
    _, bob_t = await open_session(hub, 43)
    store.update_user(42, is_banned=True)

    await send(alice, "chatMessage", {"text": "still here?"})
    await alice.connection.wait_closed()

    assert alice_t.of_type("error")[-1]["code"] == "banned"
    assert alice_t.close_code == CLOSE_BANNED
    assert alice.connection.id not in hub.registry
    assert store.chat == {}
    assert bob_t.of_type("chatMessage") == []
    assert bob_t.of_type("activeUsers")[-1] == [{"userId": 43, "username": "bob"}]


@pytest.mark.asyncio
async def test_ban_closes_every_device_of_the_principal(hub):
    phone, phone_t = await open_session(hub, 42)
    laptop, laptop_t = await open_session(hub, 42)

    closed = hub.disconnect_principal(42, BannedError("You have been banned"))
    await asyncio.gather(phone.connection.wait_closed(), laptop.connection.wait_closed())

    assert closed == 2
    assert phone_t.close_code == laptop_t.close_code == CLOSE_BANNED
    assert hub.registry.connections_for(42) == set()


@pytest.mark.asyncio
async def test_typing_indicator_uses_the_session_username(hub):
    alice, alice_t = await open_session(hub, 42)
    _, bob_t = await open_session(hub, 43)

    await send(alice, "typing", {"username": "mallory"})
    await send(alice, "typing", "")

    assert bob_t.of_type("userTyping") == [{"username": "alice"}, {"username": ""}]
    assert alice_t.of_type("userTyping") == []


@pytest.mark.asyncio
async def test_clear_chat_requires_admin(hub, store):
    store.add_chat(43, "keep me")
    alice, alice_t = await open_session(hub, 42)

    await send(alice, "clearChat")

    assert alice_t.of_type("error")[0]["code"] == "forbidden"
    assert len(store.chat) == 1
    assert alice_t.of_type("chatCleared") == []


@pytest.mark.asyncio
async def test_concurrent_clears_are_idempotent(hub, store):
    for n in range(5):
        store.add_chat(43, f"msg {n}")
    admin_a, admin_t = await open_session(hub, 1)
    admin_b, _ = await open_session(hub, 1)
    _, bob_t = await open_session(hub, 43)

    await asyncio.gather(
        admin_a.handle(WsInbound(type="clearChat")),
        admin_b.handle(WsInbound(type="clearChat")),
    )
    await hub.drain()

    assert store.chat == {}
    assert admin_t.of_type("error") == []
    assert len(bob_t.of_type("chatCleared")) == 2

    _, late_t = await open_session(hub, 44)
    assert late_t.of_type("chatHistory")[-1] == []


@pytest.mark.asyncio
async def test_request_chat_history_is_ascending(hub, store):
    alice, transport = await open_session(hub, 42)
    ids = [store.add_chat(43, f"m{n}").id for n in range(3)]

    await send(alice, "requestChatHistory")

    assert [m["id"] for m in transport.of_type("chatHistory")[-1]] == ids


@pytest.mark.asyncio
async def test_ping_gets_pong(hub):
    alice, transport = await open_session(hub, 42)
    await send(alice, "ping")
    assert transport.of_type("pong") == [{}]


@pytest.mark.asyncio
async def test_like_on_behalf_of_someone_else_is_forbidden(hub, store):
    post = store.add_post(43)
    alice, transport = await open_session(hub, 42)

    await send(alice, "postLiked", {"postId": post.id, "userId": 43, "action": "like"})

    assert transport.of_type("error")[0]["code"] == "forbidden"
    assert store.likes == set()


@pytest.mark.asyncio
async def test_post_like_goes_to_everyone_but_the_sender(hub, store):
    post = store.add_post(43)
    alice, alice_t = await open_session(hub, 42)
    _, bob_t = await open_session(hub, 43)

    await send(alice, "postLiked", {"postId": post.id, "userId": 42, "action": "like"})
    await send(alice, "postLiked", {"postId": post.id, "userId": 42, "action": "like"})

    assert bob_t.of_type("postLikeUpdated") == [
        {"postId": post.id, "principalId": 42, "action": "like", "likeCount": 1}
    ]
    assert alice_t.of_type("postLikeUpdated") == []
    assert alice_t.of_type("error")[0]["code"] == "already_liked"


@pytest.mark.asyncio
async def test_feed_room_membership_controls_post_events(hub, store):
    alice, alice_t = await open_session(hub, 42)
    bob, bob_t = await open_session(hub, 43)
    await send(bob, "joinFeed")
    post = store.add_post(42)

    await send(alice, "newPost", {"post": {"id": post.id}})
    await send(bob, "leaveFeed")
    await send(alice, "deletePost", {"postId": post.id})

    assert [p["id"] for p in bob_t.of_type("postCreated")] == [post.id]
    assert bob_t.of_type("postDeleted") == []
    assert alice_t.of_type("postCreated") == []
    assert post.id not in store.posts


@pytest.mark.asyncio
async def test_announcing_someone_elses_post_is_forbidden(hub, store):
    post = store.add_post(43)
    alice, transport = await open_session(hub, 42)

    await send(alice, "newPost", {"post": {"id": post.id}})

    assert transport.of_type("error")[0]["code"] == "forbidden"


@pytest.mark.asyncio
async def test_comment_commands_broadcast_fresh_totals(hub, store):
    post = store.add_post(43)
    alice, alice_t = await open_session(hub, 42)
    _, bob_t = await open_session(hub, 43)

    await send(alice, "newComment", {"postId": post.id, "comment": "nice"})
    [added] = bob_t.of_type("commentAdded")
    comment_id = added["comment"]["id"]
    await send(alice, "deleteComment", {"postId": post.id, "commentId": comment_id})

    assert added["total"] == 1
    assert added["comment"]["username"] == "alice"
    assert alice_t.of_type("commentDeleted") == [
        {"postId": post.id, "commentId": comment_id, "total": 0}
    ]


@pytest.mark.asyncio
async def test_direct_message_spoofed_sender_is_forbidden(hub, store):
    alice, transport = await open_session(hub, 42)

    await send(alice, "directMessage", {"senderId": 43, "recipientId": 44, "message": "hi"})

    assert transport.of_type("error")[0]["code"] == "forbidden"
    assert store.direct_messages == []


@pytest.mark.asyncio
async def test_deleted_account_is_disconnected(hub, store):
    alice, transport = await open_session(hub, 42)
    del store.users[42]

    await send(alice, "chatMessage", {"text": "ghost"})
    await alice.connection.wait_closed()

    assert transport.of_type("error")[-1]["code"] == "principal_not_found"
    assert alice.connection.id not in hub.registry


@pytest.mark.asyncio
async def test_oversized_frame_is_rejected(hub, store):
    alice, transport = await open_session(hub, 42)
    text = "x" * (MAX_FRAME_BYTES + 1)

    await alice.handle_raw(f'{{"type": "chatMessage", "data": {{"text": "{text}"}}}}')
    await hub.drain()

    assert transport.of_type("error")[0]["code"] == "invalid_payload"
    assert store.chat == {}


@pytest.mark.parametrize("command", ["postLiked", "newComment", "deleteComment", "deletePost"])
def test_post_commands_share_the_http_ordering_key(command):
    key = COMMANDS[command].ordering_key

    assert key({"postId": 1}) == key({"postId": 1.0}) == key({"postId": "1"}) == ("post", "1")
    assert key({"postId": "abc"}) is None
    assert key({}) is None
