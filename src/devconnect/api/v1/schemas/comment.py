from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class CommentRequest(BaseModel):
    post_id: int
    content: str = Field(min_length=1)


class CommentResponse(BaseModel):
    id: int
    post_id: int
    user_id: int
    username: str
    content: str
    created_at: datetime

    model_config = {"from_attributes": True}


class CommentCreatedResponse(BaseModel):
    comment: CommentResponse
    total: int


class CommentDeletedResponse(BaseModel):
    post_id: int
    comment_id: int
    total: int
