from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from counsel_service.api.v1.schemas.user import ParticipantSummaryResponse
from counsel_service.application.dto.message import MessageView
from counsel_service.domain.value_objects.enums import MessageType


class Attachment(BaseModel):
    filename: str
    url: str
    file_type: str | None = None


class SendMessageRequest(BaseModel):
    appointment_id: UUID
    content: str = Field(min_length=1)
    message_type: MessageType = MessageType.TEXT
    attachments: list[Attachment] = []
    client_msg_id: UUID | None = None


class MarkReadRequest(BaseModel):
    appointment_id: UUID


class MarkReadResponse(BaseModel):
    modified_count: int


class UnreadCountResponse(BaseModel):
    unread_count: int
    user_type: str
    user_id: int


class MessageResponse(BaseModel):
    id: UUID
    appointment_id: UUID
    sender_id: int
    receiver_id: int
    sender: ParticipantSummaryResponse | None
    receiver: ParticipantSummaryResponse | None
    content: str
    message_type: str
    is_read: bool
    attachments: list[Attachment]
    client_msg_id: UUID | None
    created_at: datetime

    @classmethod
    def from_view(cls, view: MessageView) -> MessageResponse:
        return cls.model_validate(view.to_payload())
