from __future__ import annotations

from enum import StrEnum


class Role(StrEnum):
    USER = "user"
    ADMIN = "admin"


class LifecycleState(StrEnum):
    CONNECTING = "connecting"
    AUTHENTICATED = "authenticated"
    CLOSED = "closed"


class LikeAction(StrEnum):
    LIKE = "like"
    UNLIKE = "unlike"
