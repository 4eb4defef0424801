from __future__ import annotations

from devconnect.domain.entities.post import Post
from devconnect.infrastructure.db.models.post import PostModel


def model_to_entity(model: PostModel) -> Post:
    return Post(
        id=model.id,
        user_id=model.user_id,
        username=model.author.username,
        content=model.content,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )
