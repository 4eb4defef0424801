from __future__ import annotations

from devconnect.application.dto.principal import Principal
from devconnect.application.exceptions import ForbiddenError, NotFoundError, ValidationError
from devconnect.application.policies.permissions import assert_owner_or_admin
from devconnect.application.ports.clock import DEFAULT_CLOCK, Clock
from devconnect.application.uow import UnitOfWork
from devconnect.domain.entities.post import FeedPost, Post

MAX_POST_LENGTH = 5000


def _clean_content(content: object) -> str:
    if not isinstance(content, str) or not content.strip():
        raise ValidationError("Post content is required")
    if len(content) > MAX_POST_LENGTH:
        raise ValidationError(f"Post exceeds {MAX_POST_LENGTH} characters")
    return content.strip()


async def get_post(post_id: int, uow: UnitOfWork) -> Post:
    post = await uow.posts.get_by_id(post_id)
    if post is None:
        raise NotFoundError("Post not found")
    return post


async def list_feed(
    viewer: Principal | None,
    page: int,
    page_size: int,
    uow: UnitOfWork,
) -> list[FeedPost]:
    offset = max(page - 1, 0) * page_size
    return await uow.posts.list_feed(
        viewer.id if viewer else None, offset=offset, limit=page_size,
    )


async def create_post(
    principal: Principal,
    content: object,
    uow: UnitOfWork,
    clock: Clock = DEFAULT_CLOCK,
) -> Post:
    body = _clean_content(content)
    post = await uow.posts_w.create(principal.id, body, clock.now())
    await uow.commit()
    return post


async def update_post(
    principal: Principal,
    post_id: int,
    content: object,
    uow: UnitOfWork,
    clock: Clock = DEFAULT_CLOCK,
) -> Post:
    body = _clean_content(content)
    async with uow:
        post = await uow.posts_w.lock(post_id)
        if post is None:
            raise NotFoundError("Post not found")
        if post.user_id != principal.id:
            raise ForbiddenError("Not authorized to edit this post")
        post = await uow.posts_w.update(post_id, body, clock.now())
        await uow.commit()
    return post


async def delete_post(principal: Principal, post_id: int, uow: UnitOfWork) -> Post:
    """Remove a post with its likes and comments in one transaction."""
    async with uow:
        post = await uow.posts_w.lock(post_id)
        if post is None:
            raise NotFoundError("Post not found")
        assert_owner_or_admin(principal, post.user_id, "post")

        await uow.likes_w.delete_for_post(post_id)
        await uow.comments_w.delete_for_post(post_id)
        await uow.posts_w.delete(post_id)
        await uow.commit()
    return post
