from __future__ import annotations

import logging

from devconnect.application.dto.principal import Principal
from devconnect.application.exceptions import NotFoundError, ValidationError
from devconnect.application.policies.permissions import assert_admin
from devconnect.application.uow import UnitOfWork
from devconnect.domain.entities.user import User
from devconnect.domain.value_objects.enums import Role

logger = logging.getLogger(__name__)


async def clear_chat(principal: Principal, uow: UnitOfWork) -> int:
    """Delete every global chat message in one statement. Idempotent."""
    assert_admin(principal)
    deleted = await uow.chat_w.delete_all()
    await uow.commit()
    logger.info("Chat cleared by admin %s (%d messages)", principal.id, deleted)
    return deleted


async def delete_message(principal: Principal, message_id: int, uow: UnitOfWork) -> None:
    assert_admin(principal)
    if not await uow.chat_w.delete(message_id):
        raise NotFoundError("Message not found")
    await uow.commit()
    logger.info("Chat message %s deleted by admin %s", message_id, principal.id)


async def list_users(principal: Principal, uow: UnitOfWork) -> list[User]:
    assert_admin(principal)
    return await uow.users.list_all()


async def _reload(user_id: int, uow: UnitOfWork) -> User:
    user = await uow.users.get_by_id(user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


async def set_banned(
    principal: Principal, user_id: int, banned: bool, uow: UnitOfWork
) -> User:
    assert_admin(principal)
    if user_id == principal.id:
        raise ValidationError("You cannot ban yourself")
    if not await uow.users_w.set_banned(user_id, banned):
        raise NotFoundError("User not found")
    await uow.commit()
    logger.info("User %s %s by admin %s", user_id, "banned" if banned else "unbanned", principal.id)
    return await _reload(user_id, uow)


async def set_muted(
    principal: Principal, user_id: int, muted: bool, uow: UnitOfWork
) -> User:
    assert_admin(principal)
    if not await uow.users_w.set_muted(user_id, muted):
        raise NotFoundError("User not found")
    await uow.commit()
    logger.info("User %s %s by admin %s", user_id, "muted" if muted else "unmuted", principal.id)
    return await _reload(user_id, uow)


async def set_role(
    principal: Principal, user_id: int, role: Role, uow: UnitOfWork
) -> User:
    assert_admin(principal)
    if user_id == principal.id and role != Role.ADMIN:
        raise ValidationError("You cannot demote yourself")
    if not await uow.users_w.set_role(user_id, role.value):
        raise NotFoundError("User not found")
    await uow.commit()
    logger.info("User %s role set to %s by admin %s", user_id, role, principal.id)
    return await _reload(user_id, uow)
