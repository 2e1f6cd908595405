from __future__ import annotations

from typing import Protocol
from uuid import UUID

from counsel_service.application.dto.pagination import MessageCursor
from counsel_service.domain.entities.message import Message


class MessageReader(Protocol):
    async def list_messages(
        self,
        appointment_id: UUID,
        *,
        cursor: MessageCursor | None = None,
        limit: int = 50,
    ) -> list[Message]:
        """Oldest first; ties on created_at are broken by insertion order."""
        ...

    async def find_latest_by_content(
        self,
        appointment_id: UUID,
        content: str,
    ) -> Message | None:
        """Most recently created message of the appointment with exactly this content."""
        ...

    async def get_by_client_msg_id(
        self,
        appointment_id: UUID,
        sender_id: int,
        client_msg_id: UUID,
    ) -> Message | None: ...

    async def count_unread(self, receiver_id: int) -> int: ...


class MessageWriter(Protocol):
    async def create_if_not_exists(self, message: Message) -> tuple[Message, bool]:
        """Insert message. Return (message, created).

        When ``client_msg_id`` is set and a row with the same
        (appointment, sender, client_msg_id) exists, that row is returned.
        """
        ...

    async def mark_read(self, appointment_id: UUID, receiver_id: int) -> int:
        """Flag unread messages addressed to ``receiver_id`` as read. Returns count."""
        ...
