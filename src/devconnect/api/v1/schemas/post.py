from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from devconnect.domain.entities.post import FeedPost


class PostRequest(BaseModel):
    content: str = Field(min_length=1)


class PostResponse(BaseModel):
    id: int
    user_id: int
    username: str
    content: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class FeedPostResponse(PostResponse):
    like_count: int
    comment_count: int
    is_liked: bool

    @classmethod
    def from_feed(cls, item: FeedPost) -> FeedPostResponse:
        return cls(
            **PostResponse.model_validate(item.post, from_attributes=True).model_dump(),
            like_count=item.like_count,
            comment_count=item.comment_count,
            is_liked=item.is_liked,
        )


class LikeResponse(BaseModel):
    post_id: int
    like_count: int
