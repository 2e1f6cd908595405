from __future__ import annotations

import uuid
from collections.abc import Sequence
from datetime import datetime, timezone

from counsel_service.application.dto.message import (
    MessageView,
    ParticipantSummary,
    RealtimeSubmission,
    SendMessageDTO,
)
from counsel_service.application.dto.pagination import MessageCursor
from counsel_service.application.dto.principal import Principal
from counsel_service.application.exceptions import ValidationError
from counsel_service.application.policies.permissions import (
    assert_appointment_access,
    assert_can_message,
)
from counsel_service.application.uow import UnitOfWork
from counsel_service.domain.entities.message import Message

MESSAGE_CREATED_EVENT = "chat.message_created"


async def send_message(
    principal: Principal,
    dto: SendMessageDTO,
    uow: UnitOfWork,
) -> tuple[MessageView, bool]:
    """Durably write a message for an appointment.

    Returns (view, created). With a ``client_msg_id`` the write is idempotent:
    resending the same id returns the stored row with created=False. A
    ``chat.message_created`` outbox event is recorded in the same transaction
    so the write path can push to live rooms after commit.
    """
    content = dto.content.strip() if dto.content else ""
    if not content:
        raise ValidationError(
            "Message validation failed",
            errors={"content": "Content is required"},
        )

    appointment = await uow.appointments.get_by_id(dto.appointment_id)
    appointment = assert_can_message(principal, appointment)

    msg = Message(
        id=uuid.uuid4(),
        appointment_id=appointment.id,
        sender_id=principal.user_id,
        receiver_id=appointment.other_participant(principal.user_id),
        content=content,
        message_type=dto.message_type.value,
        is_read=False,
        client_msg_id=dto.client_msg_id,
        created_at=datetime.now(timezone.utc),
        attachments=list(dto.attachments),
    )

    msg, created = await uow.messages_w.create_if_not_exists(msg)
    (view,) = await build_views([msg], uow)

    if created:
        await uow.outbox.add(
            MESSAGE_CREATED_EVENT,
            {
                "appointment_id": str(msg.appointment_id),
                "message_id": str(msg.id),
                "message": view.to_payload(),
            },
        )
        await uow.commit()

    return view, created


async def list_messages(
    principal: Principal,
    appointment_id: uuid.UUID,
    cursor: str | None,
    limit: int,
    uow: UnitOfWork,
) -> list[MessageView]:
    appointment = await uow.appointments.get_by_id(appointment_id)
    assert_appointment_access(principal, appointment)
    position = MessageCursor.decode(cursor) if cursor else None
    messages = await uow.messages.list_messages(appointment_id, cursor=position, limit=limit)
    return await build_views(messages, uow)


async def mark_read(
    principal: Principal,
    appointment_id: uuid.UUID,
    uow: UnitOfWork,
) -> int:
    """Mark every unread message addressed to the caller as read. Returns the count."""
    appointment = await uow.appointments.get_by_id(appointment_id)
    assert_appointment_access(principal, appointment)
    modified = await uow.messages_w.mark_read(appointment_id, principal.user_id)
    await uow.commit()
    return modified


async def unread_count(principal: Principal, uow: UnitOfWork) -> int:
    return await uow.messages.count_unread(principal.user_id)


async def find_submitted(
    submission: RealtimeSubmission,
    sender_id: int,
    uow: UnitOfWork,
) -> MessageView | None:
    """Locate the stored row a real-time submission refers to.

    A correlation id, when present, is authoritative. Otherwise the most
    recent message of the appointment whose content equals the trimmed
    submitted content is used.
    """
    if submission.client_msg_id is not None:
        msg = await uow.messages.get_by_client_msg_id(
            submission.appointment_id, sender_id, submission.client_msg_id,
        )
    else:
        msg = await uow.messages.find_latest_by_content(
            submission.appointment_id, submission.content.strip(),
        )
    if msg is None:
        return None
    (view,) = await build_views([msg], uow)
    return view


async def build_views(messages: Sequence[Message], uow: UnitOfWork) -> list[MessageView]:
    """Attach sender/receiver summaries using one batched user lookup."""
    user_ids = {m.sender_id for m in messages} | {m.receiver_id for m in messages}
    users = await uow.users.get_many(user_ids)
    summaries = {uid: ParticipantSummary.from_user(u) for uid, u in users.items()}
    return [
        MessageView(
            message=m,
            sender=summaries.get(m.sender_id),
            receiver=summaries.get(m.receiver_id),
        )
        for m in messages
    ]
