from __future__ import annotations

from fastapi import APIRouter, Query, status

from devconnect.api.deps import CurrentPrincipal, HubDep, OptionalPrincipal, UoWDep
from devconnect.api.v1.schemas.post import (
    FeedPostResponse,
    LikeResponse,
    PostRequest,
    PostResponse,
)
from devconnect.application.dto.principal import Principal
from devconnect.application.uow import UnitOfWork
from devconnect.config import settings
from devconnect.domain.value_objects.enums import LikeAction
from devconnect.realtime import events
from devconnect.realtime.events import EventType
from devconnect.realtime.hub import RealtimeHub
from devconnect.realtime.scopes import FEED_ROOM, ToAll, ToRoom
from devconnect.services import engagement_service, feed_service

router = APIRouter(prefix="/api/posts", tags=["posts"])


@router.get("", response_model=list[FeedPostResponse])
async def list_posts(
    viewer: OptionalPrincipal,
    uow: UoWDep,
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.FEED_PAGE_SIZE, ge=1, le=100),
) -> list[FeedPostResponse]:
    items = await feed_service.list_feed(viewer, page, page_size, uow)
    return [FeedPostResponse.from_feed(item) for item in items]


@router.post("", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def create_post(
    body: PostRequest,
    principal: CurrentPrincipal,
    uow: UoWDep,
    hub: HubDep,
) -> PostResponse:
    post = await feed_service.create_post(principal, body.content, uow)
    hub.publish(EventType.POST_CREATED, events.post(post), ToRoom(FEED_ROOM))
    return PostResponse.model_validate(post, from_attributes=True)


@router.put("/{post_id}", response_model=PostResponse)
async def update_post(
    post_id: int,
    body: PostRequest,
    principal: CurrentPrincipal,
    uow: UoWDep,
    hub: HubDep,
) -> PostResponse:
    async with hub.sequencer.hold(("post", str(post_id))):
        post = await feed_service.update_post(principal, post_id, body.content, uow)
        hub.publish(EventType.POST_UPDATED, events.post(post), ToRoom(FEED_ROOM))
    return PostResponse.model_validate(post, from_attributes=True)


@router.delete("/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_post(
    post_id: int,
    principal: CurrentPrincipal,
    uow: UoWDep,
    hub: HubDep,
) -> None:
    async with hub.sequencer.hold(("post", str(post_id))):
        await feed_service.delete_post(principal, post_id, uow)
        hub.publish(EventType.POST_DELETED, {"postId": post_id}, ToRoom(FEED_ROOM))


async def _toggle(
    principal: Principal,
    post_id: int,
    action: LikeAction,
    uow: UnitOfWork,
    hub: RealtimeHub,
) -> LikeResponse:
    async with hub.sequencer.hold(("post", str(post_id))):
        like_count = await engagement_service.toggle_like(principal, post_id, action, uow)
        hub.publish(
            EventType.POST_LIKE_UPDATED,
            events.like_updated(post_id, principal.id, action.value, like_count),
            ToAll(),
        )
    return LikeResponse(post_id=post_id, like_count=like_count)


@router.post("/{post_id}/like", response_model=LikeResponse)
async def like_post(
    post_id: int,
    principal: CurrentPrincipal,
    uow: UoWDep,
    hub: HubDep,
) -> LikeResponse:
    return await _toggle(principal, post_id, LikeAction.LIKE, uow, hub)


@router.delete("/{post_id}/like", response_model=LikeResponse)
async def unlike_post(
    post_id: int,
    principal: CurrentPrincipal,
    uow: UoWDep,
    hub: HubDep,
) -> LikeResponse:
    return await _toggle(principal, post_id, LikeAction.UNLIKE, uow, hub)
