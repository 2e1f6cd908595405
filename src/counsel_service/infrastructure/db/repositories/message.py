from __future__ import annotations

from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from counsel_service.application.dto.pagination import MessageCursor
from counsel_service.domain.entities.message import Message
from counsel_service.infrastructure.db.mappers import message as mapper
from counsel_service.infrastructure.db.models.message import MessageModel


class MessageReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_messages(
        self,
        appointment_id: UUID,
        *,
        cursor: MessageCursor | None = None,
        limit: int = 50,
    ) -> list[Message]:
        stmt = (
            select(MessageModel)
            .where(MessageModel.appointment_id == appointment_id)
            .order_by(MessageModel.created_at.asc(), MessageModel.seq.asc())
            .limit(limit)
        )
        if cursor is not None:
            stmt = stmt.where(
                (MessageModel.created_at > cursor.created_at)
                | ((MessageModel.created_at == cursor.created_at) & (MessageModel.seq > cursor.seq))
            )
        result = await self._session.execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().all()]

    async def find_latest_by_content(
        self,
        appointment_id: UUID,
        content: str,
    ) -> Message | None:
        stmt = (
            select(MessageModel)
            .where(
                MessageModel.appointment_id == appointment_id,
                MessageModel.content == content,
            )
            .order_by(MessageModel.created_at.desc(), MessageModel.seq.desc())
            .limit(1)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return mapper.model_to_entity(model) if model else None

    async def get_by_client_msg_id(
        self,
        appointment_id: UUID,
        sender_id: int,
        client_msg_id: UUID,
    ) -> Message | None:
        stmt = select(MessageModel).where(
            MessageModel.appointment_id == appointment_id,
            MessageModel.sender_id == sender_id,
            MessageModel.client_msg_id == client_msg_id,
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return mapper.model_to_entity(model) if model else None

    async def count_unread(self, receiver_id: int) -> int:
        stmt = select(func.count()).select_from(MessageModel).where(
            MessageModel.receiver_id == receiver_id,
            MessageModel.is_read.is_(False),
        )
        result = await self._session.execute(stmt)
        return int(result.scalar_one())


class MessageWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create_if_not_exists(self, message: Message) -> tuple[Message, bool]:
        """Insert message idempotently. Returns (message, created_flag)."""
        values = {
            "id": message.id,
            "appointment_id": message.appointment_id,
            "sender_id": message.sender_id,
            "receiver_id": message.receiver_id,
            "content": message.content,
            "message_type": message.message_type,
            "is_read": message.is_read,
            "attachments": list(message.attachments),
            "client_msg_id": message.client_msg_id,
            "created_at": message.created_at,
        }
        stmt = (
            pg_insert(MessageModel)
            .values(**values)
            .on_conflict_do_nothing(constraint="uq_message_idempotency")
            .returning(MessageModel)
        )
        result = await self._session.execute(stmt)
        row = result.scalar_one_or_none()

        if row is not None:
            return mapper.model_to_entity(row), True

        # Conflict: only possible with a client_msg_id
        assert message.client_msg_id is not None
        existing = await MessageReaderRepo(self._session).get_by_client_msg_id(
            message.appointment_id,
            message.sender_id,
            message.client_msg_id,
        )
        assert existing is not None
        return existing, False

    async def mark_read(self, appointment_id: UUID, receiver_id: int) -> int:
        stmt = (
            update(MessageModel)
            .where(
                MessageModel.appointment_id == appointment_id,
                MessageModel.receiver_id == receiver_id,
                MessageModel.is_read.is_(False),
            )
            .values(is_read=True)
        )
        result = await self._session.execute(stmt)
        return result.rowcount or 0
