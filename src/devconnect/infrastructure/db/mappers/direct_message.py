from __future__ import annotations

from devconnect.domain.entities.direct_message import DirectMessage
from devconnect.infrastructure.db.models.direct_message import DirectMessageModel


def model_to_entity(model: DirectMessageModel) -> DirectMessage:
    return DirectMessage(
        id=model.id,
        sender_id=model.sender_id,
        sender_username=model.sender.username,
        recipient_id=model.recipient_id,
        text=model.message,
        sent_at=model.created_at,
    )
