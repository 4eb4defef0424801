"""Like and comment counters.

The only code allowed to produce a like or comment total. Every total is counted
from the store inside the transaction that wrote, after the write, while the post
row lock is held.
"""
from __future__ import annotations

from devconnect.application.dto.principal import Principal
from devconnect.application.exceptions import (
    AlreadyLikedError,
    NotFoundError,
    NotLikedError,
    ValidationError,
)
from devconnect.application.policies.permissions import assert_owner_or_admin
from devconnect.application.ports.clock import DEFAULT_CLOCK, Clock
from devconnect.application.uow import UnitOfWork
from devconnect.domain.entities.comment import Comment
from devconnect.domain.value_objects.enums import LikeAction

MAX_COMMENT_LENGTH = 1000


async def toggle_like(
    principal: Principal,
    post_id: int,
    action: LikeAction,
    uow: UnitOfWork,
) -> int:
    """Apply a like/unlike and return the authoritative like count."""
    async with uow:
        post = await uow.posts_w.lock(post_id)
        if post is None:
            raise NotFoundError("Post not found")

        liked = await uow.likes.exists(post_id, principal.id)
        if action == LikeAction.LIKE:
            if liked:
                raise AlreadyLikedError("You already liked this post")
            await uow.likes_w.add(post_id, principal.id)
        else:
            if not liked:
                raise NotLikedError("You have not liked this post")
            await uow.likes_w.remove(post_id, principal.id)

        like_count = await uow.likes.count_for_post(post_id)
        await uow.commit()
    return like_count


async def add_comment(
    principal: Principal,
    post_id: int,
    content: object,
    uow: UnitOfWork,
    clock: Clock = DEFAULT_CLOCK,
) -> tuple[Comment, int]:
    """Returns (comment, total comments on the post)."""
    if not isinstance(content, str) or not content.strip():
        raise ValidationError("Comment content is required")
    if len(content) > MAX_COMMENT_LENGTH:
        raise ValidationError(f"Comment exceeds {MAX_COMMENT_LENGTH} characters")

    async with uow:
        post = await uow.posts_w.lock(post_id)
        if post is None:
            raise NotFoundError("Post not found")
        comment = await uow.comments_w.create(post_id, principal.id, content.strip(), clock.now())
        total = await uow.comments.count_for_post(post_id)
        await uow.commit()
    return comment, total


async def post_id_of_comment(comment_id: int, uow: UnitOfWork) -> int:
    comment = await uow.comments.get_by_id(comment_id)
    if comment is None:
        raise NotFoundError("Comment not found")
    return comment.post_id


async def delete_comment(
    principal: Principal,
    comment_id: int,
    uow: UnitOfWork,
    *,
    post_id: int | None = None,
) -> tuple[int, int]:
    """Returns (post id, total comments left on the post)."""
    async with uow:
        comment = await uow.comments.get_by_id(comment_id)
        if comment is None or (post_id is not None and comment.post_id != post_id):
            raise NotFoundError("Comment not found")
        assert_owner_or_admin(principal, comment.user_id, "comment")

        post = await uow.posts_w.lock(comment.post_id)
        if post is None:
            raise NotFoundError("Post not found")
        await uow.comments_w.delete(comment_id)
        total = await uow.comments.count_for_post(comment.post_id)
        await uow.commit()
    return comment.post_id, total


async def list_comments(post_id: int, uow: UnitOfWork) -> list[Comment]:
    return await uow.comments.list_for_post(post_id)
