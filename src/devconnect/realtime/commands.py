"""Client command handlers.

Each handler is ``async (ctx, data) -> list[Effect]``: it persists through the
services and describes what to publish, and keeps no state of its own.
"""
from __future__ import annotations

from collections.abc import Awaitable, Hashable
from dataclasses import dataclass
from typing import Any, Callable

from devconnect.application.dto.principal import Principal
from devconnect.application.exceptions import ForbiddenError, ValidationError
from devconnect.application.policies.permissions import assert_can_send
from devconnect.domain.value_objects.enums import LikeAction
from devconnect.domain.value_objects.ids import ConnectionId
from devconnect.realtime import events
from devconnect.realtime.events import EventType
from devconnect.realtime.fanout import Effect, JoinRoom, LeaveRoom, Publish
from devconnect.realtime.hub import UoWFactory
from devconnect.realtime.scopes import (
    FEED_ROOM,
    ExceptSender,
    ToAll,
    ToConnection,
    ToPrincipals,
    ToRoom,
)
from devconnect.services import (
    chat_service,
    engagement_service,
    feed_service,
    moderation_service,
)


@dataclass(frozen=True, slots=True)
class CommandContext:
    connection_id: ConnectionId
    principal: Principal
    uow_factory: UoWFactory
    history_limit: int


Handler = Callable[[CommandContext, Any], Awaitable[list[Effect]]]


@dataclass(frozen=True, slots=True)
class Command:
    handler: Handler
    # Commands sharing a key are applied and published one at a time.
    ordering_key: Callable[[Any], Hashable | None] = lambda data: None
    refresh_principal: bool = True


def _field(data: Any, name: str) -> Any:
    if isinstance(data, dict):
        return data.get(name)
    return None


def _int_field(data: Any, name: str) -> int:
    raw = _field(data, name)
    if isinstance(raw, bool):
        raise ValidationError(f"{name} must be an integer")
    try:
        return int(raw)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"{name} is required") from exc


def _post_key(data: Any) -> Hashable | None:
    # Same key as the HTTP routes, so 1, 1.0 and "1" serialize on one post.
    try:
        return ("post", str(_int_field(data, "postId")))
    except ValidationError:
        return None


def _assert_self(ctx: CommandContext, data: Any, name: str) -> None:
    """Clients echo their own id in some commands; it must match the session."""
    claimed = _field(data, name)
    if claimed is not None and str(claimed) != str(ctx.principal.id):
        raise ForbiddenError(f"{name} does not match the authenticated user")


async def chat_message(ctx: CommandContext, data: Any) -> list[Effect]:
    async with ctx.uow_factory() as uow:
        msg = await chat_service.send_chat_message(
            ctx.principal, _field(data, "text"), _field(data, "time"), uow,
        )
    return [Publish(EventType.CHAT_MESSAGE, events.chat_message(msg), ToAll())]


async def typing(ctx: CommandContext, data: Any) -> list[Effect]:
    assert_can_send(ctx.principal)
    raw = data if isinstance(data, str) else _field(data, "username")
    # The indicator always names the session's user, whatever the client sent.
    username = ctx.principal.username if isinstance(raw, str) and raw.strip() else ""
    return [Publish(EventType.USER_TYPING, {"username": username}, ExceptSender(ctx.connection_id))]


async def clear_chat(ctx: CommandContext, data: Any) -> list[Effect]:
    async with ctx.uow_factory() as uow:
        await moderation_service.clear_chat(ctx.principal, uow)
    return [Publish(EventType.CHAT_CLEARED, {}, ToAll())]


async def delete_chat_message(ctx: CommandContext, data: Any) -> list[Effect]:
    message_id = _int_field(data, "id")
    async with ctx.uow_factory() as uow:
        await moderation_service.delete_message(ctx.principal, message_id, uow)
    return [Publish(EventType.CHAT_MESSAGE_DELETED, {"id": message_id}, ToAll())]


async def request_chat_history(ctx: CommandContext, data: Any) -> list[Effect]:
    async with ctx.uow_factory() as uow:
        history = await chat_service.recent_history(ctx.history_limit, uow)
    return [
        Publish(EventType.CHAT_HISTORY, events.chat_history(history), ToConnection(ctx.connection_id))
    ]


async def join_feed(ctx: CommandContext, data: Any) -> list[Effect]:
    return [JoinRoom(FEED_ROOM)]


async def leave_feed(ctx: CommandContext, data: Any) -> list[Effect]:
    return [LeaveRoom(FEED_ROOM)]


async def new_post(ctx: CommandContext, data: Any) -> list[Effect]:
    """Announce a post created over HTTP. The payload is re-read from the store."""
    post_data = _field(data, "post") or data
    post_id = _int_field(post_data, "id")
    async with ctx.uow_factory() as uow:
        post = await feed_service.get_post(post_id, uow)
    if post.user_id != ctx.principal.id and not ctx.principal.is_admin:
        raise ForbiddenError("Cannot announce another user's post")
    return [Publish(EventType.POST_CREATED, events.post(post), ToRoom(FEED_ROOM))]


async def post_liked(ctx: CommandContext, data: Any) -> list[Effect]:
    post_id = _int_field(data, "postId")
    _assert_self(ctx, data, "userId")
    try:
        action = LikeAction(_field(data, "action"))
    except ValueError as exc:
        raise ValidationError("action must be 'like' or 'unlike'") from exc

    async with ctx.uow_factory() as uow:
        like_count = await engagement_service.toggle_like(ctx.principal, post_id, action, uow)
    return [
        Publish(
            EventType.POST_LIKE_UPDATED,
            events.like_updated(post_id, ctx.principal.id, action.value, like_count),
            ExceptSender(ctx.connection_id),
        )
    ]


async def new_comment(ctx: CommandContext, data: Any) -> list[Effect]:
    post_id = _int_field(data, "postId")
    content = _field(data, "comment")
    if isinstance(content, dict):
        content = content.get("content", content.get("text"))

    async with ctx.uow_factory() as uow:
        comment, total = await engagement_service.add_comment(ctx.principal, post_id, content, uow)
    return [Publish(EventType.COMMENT_ADDED, events.comment_added(comment, total), ToAll())]


async def delete_comment(ctx: CommandContext, data: Any) -> list[Effect]:
    post_id = _int_field(data, "postId")
    comment_id = _int_field(data, "commentId")
    async with ctx.uow_factory() as uow:
        post_id, total = await engagement_service.delete_comment(
            ctx.principal, comment_id, uow, post_id=post_id,
        )
    return [
        Publish(
            EventType.COMMENT_DELETED,
            events.comment_deleted(post_id, comment_id, total),
            ToAll(),
        )
    ]


async def delete_post(ctx: CommandContext, data: Any) -> list[Effect]:
    post_id = _int_field(data, "postId")
    async with ctx.uow_factory() as uow:
        await feed_service.delete_post(ctx.principal, post_id, uow)
    return [Publish(EventType.POST_DELETED, {"postId": post_id}, ToRoom(FEED_ROOM))]


async def direct_message(ctx: CommandContext, data: Any) -> list[Effect]:
    _assert_self(ctx, data, "senderId")
    recipient_id = _int_field(data, "recipientId") if _field(data, "recipientId") is not None else None
    async with ctx.uow_factory() as uow:
        dm = await chat_service.send_direct_message(
            ctx.principal, recipient_id, _field(data, "message"), uow,
        )
    return [
        Publish(
            EventType.DIRECT_MESSAGE,
            events.direct_message(dm),
            ToPrincipals.of(dm.sender_id, dm.recipient_id),
        )
    ]


async def ping(ctx: CommandContext, data: Any) -> list[Effect]:
    return [Publish(EventType.PONG, {}, ToConnection(ctx.connection_id))]


COMMANDS: dict[str, Command] = {
    "chatMessage": Command(chat_message),
    "typing": Command(typing),
    "clearChat": Command(clear_chat),
    "deleteChatMessage": Command(delete_chat_message),
    "requestChatHistory": Command(request_chat_history),
    "joinFeed": Command(join_feed),
    "leaveFeed": Command(leave_feed),
    "newPost": Command(new_post),
    "postLiked": Command(post_liked, ordering_key=_post_key),
    "newComment": Command(new_comment, ordering_key=_post_key),
    "deleteComment": Command(delete_comment, ordering_key=_post_key),
    "deletePost": Command(delete_post, ordering_key=_post_key),
    "directMessage": Command(direct_message),
    "ping": Command(ping, refresh_principal=False),
}
