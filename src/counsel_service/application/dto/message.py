from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any
from uuid import UUID

from counsel_service.domain.entities.message import Message
from counsel_service.domain.entities.user import User
from counsel_service.domain.value_objects.enums import MessageType


@dataclass(frozen=True, slots=True)
class SendMessageDTO:
    appointment_id: UUID
    content: str
    message_type: MessageType = MessageType.TEXT
    attachments: list[dict[str, Any]] = field(default_factory=list)
    client_msg_id: UUID | None = None


@dataclass(frozen=True, slots=True)
class RealtimeSubmission:
    """A ``message.send`` frame received over the live channel.

    The message itself is persisted by the HTTP write path; the submission only
    identifies which stored row should be broadcast to the room.
    """

    appointment_id: UUID
    content: str
    message_type: MessageType = MessageType.TEXT
    client_msg_id: UUID | None = None


@dataclass(frozen=True, slots=True)
class ParticipantSummary:
    id: int
    first_name: str
    last_name: str
    avatar: str

    @classmethod
    def from_user(cls, user: User) -> ParticipantSummary:
        return cls(
            id=user.id,
            first_name=user.first_name,
            last_name=user.last_name,
            avatar=user.avatar,
        )

    def to_payload(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "avatar": self.avatar,
        }


@dataclass(frozen=True, slots=True)
class MessageView:
    """Stored message with populated sender/receiver summaries."""

    message: Message
    sender: ParticipantSummary | None
    receiver: ParticipantSummary | None

    def to_payload(self) -> dict[str, Any]:
        """JSON-ready representation shared by the HTTP and WS paths."""
        msg = self.message
        return {
            "id": str(msg.id),
            "appointment_id": str(msg.appointment_id),
            "sender_id": msg.sender_id,
            "receiver_id": msg.receiver_id,
            "sender": self.sender.to_payload() if self.sender else None,
            "receiver": self.receiver.to_payload() if self.receiver else None,
            "content": msg.content,
            "message_type": msg.message_type,
            "is_read": msg.is_read,
            "attachments": list(msg.attachments),
            "client_msg_id": str(msg.client_msg_id) if msg.client_msg_id else None,
            "created_at": msg.created_at.isoformat(),
        }
