"""Outbound event names and payload builders (the wire contract)."""
from __future__ import annotations

from enum import StrEnum
from typing import Any

from devconnect.application.exceptions import AppError
from devconnect.domain.entities.chat_message import ChatMessage
from devconnect.domain.entities.comment import Comment
from devconnect.domain.entities.direct_message import DirectMessage
from devconnect.domain.entities.post import Post
from devconnect.realtime.registry import PresenceEntry


class EventType(StrEnum):
    CHAT_HISTORY = "chatHistory"
    CHAT_MESSAGE = "chatMessage"
    USER_TYPING = "userTyping"
    CHAT_CLEARED = "chatCleared"
    CHAT_MESSAGE_DELETED = "chatMessageDeleted"
    POST_CREATED = "postCreated"
    POST_UPDATED = "postUpdated"
    POST_DELETED = "postDeleted"
    POST_LIKE_UPDATED = "postLikeUpdated"
    COMMENT_ADDED = "commentAdded"
    COMMENT_DELETED = "commentDeleted"
    DIRECT_MESSAGE = "directMessage"
    ACTIVE_USERS = "activeUsers"
    ERROR = "error"
    PONG = "pong"


def chat_message(msg: ChatMessage) -> dict[str, Any]:
    return {
        "id": msg.id,
        "userId": msg.author_id,
        "user": msg.author_username,
        "text": msg.text,
        "time": msg.time,
        "sentAt": msg.sent_at.isoformat(),
        "profileImage": msg.author_profile_image,
    }


def chat_history(messages: list[ChatMessage]) -> list[dict[str, Any]]:
    return [chat_message(m) for m in messages]


def direct_message(dm: DirectMessage) -> dict[str, Any]:
    return {
        "id": dm.id,
        "senderId": dm.sender_id,
        "senderUsername": dm.sender_username,
        "recipientId": dm.recipient_id,
        "message": dm.text,
        "sentAt": dm.sent_at.isoformat(),
    }


def post(p: Post) -> dict[str, Any]:
    return {
        "id": p.id,
        "userId": p.user_id,
        "username": p.username,
        "content": p.content,
        "createdAt": p.created_at.isoformat(),
        "updatedAt": p.updated_at.isoformat(),
    }


def comment(c: Comment) -> dict[str, Any]:
    return {
        "id": c.id,
        "postId": c.post_id,
        "userId": c.user_id,
        "username": c.username,
        "content": c.content,
        "createdAt": c.created_at.isoformat(),
    }


def like_updated(post_id: int, principal_id: int, action: str, like_count: int) -> dict[str, Any]:
    return {
        "postId": post_id,
        "principalId": principal_id,
        "action": action,
        "likeCount": like_count,
    }


def comment_added(c: Comment, total: int) -> dict[str, Any]:
    return {"postId": c.post_id, "comment": comment(c), "total": total}


def comment_deleted(post_id: int, comment_id: int, total: int) -> dict[str, Any]:
    return {"postId": post_id, "commentId": comment_id, "total": total}


def active_users(entries: list[PresenceEntry]) -> list[dict[str, Any]]:
    return [{"userId": e.principal_id, "username": e.username} for e in entries]


def error(exc: AppError) -> dict[str, Any]:
    return {"message": exc.detail or exc.code, "code": exc.code}
