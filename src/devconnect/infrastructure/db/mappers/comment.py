from __future__ import annotations

from devconnect.domain.entities.comment import Comment
from devconnect.infrastructure.db.models.comment import CommentModel


def model_to_entity(model: CommentModel) -> Comment:
    return Comment(
        id=model.id,
        post_id=model.post_id,
        user_id=model.user_id,
        username=model.author.username,
        content=model.content,
        created_at=model.created_at,
    )
