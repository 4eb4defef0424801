from __future__ import annotations

from devconnect.application.dto.principal import Principal
from devconnect.application.exceptions import ValidationError
from devconnect.application.policies.permissions import assert_can_send
from devconnect.application.ports.clock import DEFAULT_CLOCK, Clock
from devconnect.application.uow import UnitOfWork
from devconnect.domain.entities.chat_message import ChatMessage
from devconnect.domain.entities.direct_message import DirectMessage

MAX_MESSAGE_LENGTH = 2000
MAX_TIME_LABEL_LENGTH = 32


def _clean_text(text: object) -> str:
    if not isinstance(text, str) or not text.strip():
        raise ValidationError("Message text is required")
    text = text.strip()
    if len(text) > MAX_MESSAGE_LENGTH:
        raise ValidationError(f"Message exceeds {MAX_MESSAGE_LENGTH} characters")
    return text


def _clean_time(time: object) -> str | None:
    """The client's display label for the send time; stored as-is."""
    if time is None:
        return None
    if not isinstance(time, str) or len(time) > MAX_TIME_LABEL_LENGTH:
        raise ValidationError(f"time must be a string of at most {MAX_TIME_LABEL_LENGTH} characters")
    return time


async def send_chat_message(
    principal: Principal,
    text: object,
    time: object,
    uow: UnitOfWork,
    clock: Clock = DEFAULT_CLOCK,
) -> ChatMessage:
    """Persist a global chat message. The returned entity carries the store id."""
    assert_can_send(principal)
    body = _clean_text(text)
    label = _clean_time(time)

    msg = await uow.chat_w.create(principal.id, body, label, clock.now())
    await uow.commit()
    return msg


async def recent_history(limit: int, uow: UnitOfWork) -> list[ChatMessage]:
    return await uow.chat.list_recent(limit)


async def send_direct_message(
    principal: Principal,
    recipient_id: int | None,
    text: object,
    uow: UnitOfWork,
    clock: Clock = DEFAULT_CLOCK,
) -> DirectMessage:
    assert_can_send(principal)
    if recipient_id is None:
        raise ValidationError("recipientId is required")
    if recipient_id == principal.id:
        raise ValidationError("You cannot send messages to yourself")
    body = _clean_text(text)

    recipient = await uow.users.get_by_id(recipient_id)
    if recipient is None:
        raise ValidationError("Recipient does not exist")

    dm = await uow.direct_messages_w.create(principal.id, recipient_id, body, clock.now())
    await uow.commit()
    return dm


async def list_direct_messages(
    principal: Principal,
    other_user_id: int,
    limit: int,
    uow: UnitOfWork,
) -> list[DirectMessage]:
    return await uow.direct_messages.list_between(principal.id, other_user_id, limit=limit)
