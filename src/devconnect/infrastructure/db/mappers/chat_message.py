from __future__ import annotations

from devconnect.domain.entities.chat_message import ChatMessage
from devconnect.infrastructure.db.models.chat_message import ChatMessageModel


def model_to_entity(model: ChatMessageModel) -> ChatMessage:
    return ChatMessage(
        id=model.id,
        author_id=model.user_id,
        author_username=model.author.username,
        text=model.text,
        time=model.time,
        sent_at=model.created_at,
        author_profile_image=model.author.profile_image,
    )
