from __future__ import annotations

from fastapi import APIRouter, Query

from devconnect.api.deps import CurrentPrincipal, UoWDep
from devconnect.api.v1.schemas.message import DirectMessageResponse
from devconnect.config import settings
from devconnect.services import chat_service

router = APIRouter(prefix="/api/messages", tags=["messages"])


@router.get("/{user_id}", response_model=list[DirectMessageResponse])
async def list_direct_messages(
    user_id: int,
    principal: CurrentPrincipal,
    uow: UoWDep,
    limit: int = Query(settings.DIRECT_MESSAGE_HISTORY_LIMIT, ge=1, le=1000),
) -> list[DirectMessageResponse]:
    """Conversation between the caller and ``user_id``, oldest first."""
    messages = await chat_service.list_direct_messages(principal, user_id, limit, uow)
    return [DirectMessageResponse.model_validate(m, from_attributes=True) for m in messages]
