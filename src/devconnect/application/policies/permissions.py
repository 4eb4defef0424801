from __future__ import annotations

from devconnect.application.dto.principal import Principal
from devconnect.application.exceptions import (
    BannedError,
    ForbiddenError,
    MutedError,
)


def assert_admin(principal: Principal) -> None:
    if not principal.is_admin:
        raise ForbiddenError("Admin access required")


def assert_can_send(principal: Principal) -> None:
    """Gate for every command that creates user-visible chat content."""
    if principal.banned:
        raise BannedError("You are banned")
    if principal.muted:
        raise MutedError("You are muted and cannot send messages")


def assert_owner_or_admin(principal: Principal, owner_id: int, what: str) -> None:
    if principal.id != owner_id and not principal.is_admin:
        raise ForbiddenError(f"Not authorized to modify this {what}")
