from __future__ import annotations

from fastapi import APIRouter, status

from devconnect.api.deps import CurrentPrincipal, HubDep, UoWDep
from devconnect.api.v1.schemas.comment import (
    CommentCreatedResponse,
    CommentDeletedResponse,
    CommentRequest,
    CommentResponse,
)
from devconnect.realtime import events
from devconnect.realtime.events import EventType
from devconnect.realtime.scopes import ToAll
from devconnect.services import engagement_service, feed_service

router = APIRouter(prefix="/api/comments", tags=["comments"])


@router.post("", response_model=CommentCreatedResponse, status_code=status.HTTP_201_CREATED)
async def add_comment(
    body: CommentRequest,
    principal: CurrentPrincipal,
    uow: UoWDep,
    hub: HubDep,
) -> CommentCreatedResponse:
    async with hub.sequencer.hold(("post", str(body.post_id))):
        comment, total = await engagement_service.add_comment(
            principal, body.post_id, body.content, uow,
        )
        hub.publish(EventType.COMMENT_ADDED, events.comment_added(comment, total), ToAll())
    return CommentCreatedResponse(
        comment=CommentResponse.model_validate(comment, from_attributes=True),
        total=total,
    )


@router.get("/{post_id}", response_model=list[CommentResponse])
async def list_comments(post_id: int, uow: UoWDep) -> list[CommentResponse]:
    await feed_service.get_post(post_id, uow)
    comments = await engagement_service.list_comments(post_id, uow)
    return [CommentResponse.model_validate(c, from_attributes=True) for c in comments]


@router.delete("/{comment_id}", response_model=CommentDeletedResponse)
async def delete_comment(
    comment_id: int,
    principal: CurrentPrincipal,
    uow: UoWDep,
    hub: HubDep,
) -> CommentDeletedResponse:
    post_id = await engagement_service.post_id_of_comment(comment_id, uow)
    async with hub.sequencer.hold(("post", str(post_id))):
        post_id, total = await engagement_service.delete_comment(
            principal, comment_id, uow, post_id=post_id,
        )
        hub.publish(
            EventType.COMMENT_DELETED,
            events.comment_deleted(post_id, comment_id, total),
            ToAll(),
        )
    return CommentDeletedResponse(post_id=post_id, comment_id=comment_id, total=total)
