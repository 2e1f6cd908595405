from __future__ import annotations

from counsel_service.domain.entities.message import Message
from counsel_service.infrastructure.db.models.message import MessageModel


def model_to_entity(model: MessageModel) -> Message:
    return Message(
        id=model.id,
        appointment_id=model.appointment_id,
        sender_id=model.sender_id,
        receiver_id=model.receiver_id,
        content=model.content,
        message_type=model.message_type,
        is_read=model.is_read,
        client_msg_id=model.client_msg_id,
        created_at=model.created_at,
        attachments=list(model.attachments or []),
        seq=model.seq,
    )


def entity_to_model(entity: Message) -> MessageModel:
    # seq is assigned by the database
    return MessageModel(
        id=entity.id,
        appointment_id=entity.appointment_id,
        sender_id=entity.sender_id,
        receiver_id=entity.receiver_id,
        content=entity.content,
        message_type=entity.message_type,
        is_read=entity.is_read,
        client_msg_id=entity.client_msg_id,
        created_at=entity.created_at,
        attachments=list(entity.attachments),
    )
