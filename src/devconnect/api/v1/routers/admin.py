from __future__ import annotations

from fastapi import APIRouter, status

from devconnect.api.deps import CurrentAdmin, HubDep, UoWDep
from devconnect.api.v1.schemas.admin import ClearChatResponse, UserResponse
from devconnect.application.exceptions import BannedError
from devconnect.domain.value_objects.enums import Role
from devconnect.realtime.events import EventType
from devconnect.realtime.scopes import ToAll
from devconnect.services import moderation_service

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.get("/users", response_model=list[UserResponse])
async def list_users(admin: CurrentAdmin, uow: UoWDep) -> list[UserResponse]:
    users = await moderation_service.list_users(admin, uow)
    return [UserResponse.model_validate(u, from_attributes=True) for u in users]


@router.post("/users/{user_id}/ban", response_model=UserResponse)
async def ban_user(user_id: int, admin: CurrentAdmin, uow: UoWDep, hub: HubDep) -> UserResponse:
    user = await moderation_service.set_banned(admin, user_id, True, uow)
    hub.disconnect_principal(user_id, BannedError("You have been banned"))
    return UserResponse.model_validate(user, from_attributes=True)


@router.post("/users/{user_id}/unban", response_model=UserResponse)
async def unban_user(user_id: int, admin: CurrentAdmin, uow: UoWDep) -> UserResponse:
    user = await moderation_service.set_banned(admin, user_id, False, uow)
    return UserResponse.model_validate(user, from_attributes=True)


@router.post("/users/{user_id}/mute", response_model=UserResponse)
async def mute_user(user_id: int, admin: CurrentAdmin, uow: UoWDep) -> UserResponse:
    user = await moderation_service.set_muted(admin, user_id, True, uow)
    return UserResponse.model_validate(user, from_attributes=True)


@router.post("/users/{user_id}/unmute", response_model=UserResponse)
async def unmute_user(user_id: int, admin: CurrentAdmin, uow: UoWDep) -> UserResponse:
    user = await moderation_service.set_muted(admin, user_id, False, uow)
    return UserResponse.model_validate(user, from_attributes=True)


@router.post("/users/{user_id}/promote", response_model=UserResponse)
async def promote_user(user_id: int, admin: CurrentAdmin, uow: UoWDep) -> UserResponse:
    user = await moderation_service.set_role(admin, user_id, Role.ADMIN, uow)
    return UserResponse.model_validate(user, from_attributes=True)


@router.post("/users/{user_id}/demote", response_model=UserResponse)
async def demote_user(user_id: int, admin: CurrentAdmin, uow: UoWDep) -> UserResponse:
    user = await moderation_service.set_role(admin, user_id, Role.USER, uow)
    return UserResponse.model_validate(user, from_attributes=True)


@router.delete("/chat/clear", response_model=ClearChatResponse)
async def clear_chat(admin: CurrentAdmin, uow: UoWDep, hub: HubDep) -> ClearChatResponse:
    deleted = await moderation_service.clear_chat(admin, uow)
    hub.publish(EventType.CHAT_CLEARED, {}, ToAll())
    return ClearChatResponse(deleted=deleted)


@router.delete("/chat/message/{message_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_chat_message(
    message_id: int,
    admin: CurrentAdmin,
    uow: UoWDep,
    hub: HubDep,
) -> None:
    await moderation_service.delete_message(admin, message_id, uow)
    hub.publish(EventType.CHAT_MESSAGE_DELETED, {"id": message_id}, ToAll())
