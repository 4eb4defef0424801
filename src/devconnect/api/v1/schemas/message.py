from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class DirectMessageResponse(BaseModel):
    id: int
    sender_id: int
    sender_username: str
    recipient_id: int
    text: str
    sent_at: datetime

    model_config = {"from_attributes": True}
