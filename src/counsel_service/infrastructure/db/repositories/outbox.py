from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from counsel_service.application.repositories.outbox import OutboxRecord
from counsel_service.infrastructure.db.models.outbox import (
    OUTBOX_DEAD,
    OUTBOX_FAILED,
    OUTBOX_IN_FLIGHT,
    OUTBOX_PENDING,
    OUTBOX_PUBLISHED,
    OutboxEventModel,
)


class OutboxWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, event_type: str, payload: dict[str, Any]) -> None:
        self._session.add(OutboxEventModel(event_type=event_type, payload=payload))
        await self._session.flush()

    async def fetch_pending(self, batch_size: int) -> list[OutboxRecord]:
        """Claim due events in id order; rows locked by another worker are skipped."""
        due = or_(
            OutboxEventModel.next_attempt_at.is_(None),
            OutboxEventModel.next_attempt_at <= datetime.now(timezone.utc),
        )
        stmt = (
            select(OutboxEventModel)
            .where(OutboxEventModel.status.in_((OUTBOX_PENDING, OUTBOX_FAILED)), due)
            .order_by(OutboxEventModel.id)
            .limit(batch_size)
            .with_for_update(skip_locked=True)
        )
        events = list((await self._session.scalars(stmt)).all())
        if not events:
            return []

        await self._session.execute(
            update(OutboxEventModel)
            .where(OutboxEventModel.id.in_([e.id for e in events]))
            .values(status=OUTBOX_IN_FLIGHT)
        )
        return [
            OutboxRecord(id=e.id, event_type=e.event_type, payload=e.payload, attempts=e.attempts)
            for e in events
        ]

    async def mark_sent(self, ids: list[int]) -> None:
        if ids:
            await self._session.execute(
                update(OutboxEventModel)
                .where(OutboxEventModel.id.in_(ids))
                .values(status=OUTBOX_PUBLISHED, published_at=datetime.now(timezone.utc))
            )

    async def mark_failed(self, record_id: int, next_retry_at: datetime) -> None:
        await self._session.execute(
            update(OutboxEventModel)
            .where(OutboxEventModel.id == record_id)
            .values(
                status=OUTBOX_FAILED,
                attempts=OutboxEventModel.attempts + 1,
                next_attempt_at=next_retry_at,
            )
        )

    async def mark_dead(self, ids: list[int]) -> None:
        if ids:
            await self._session.execute(
                update(OutboxEventModel)
                .where(OutboxEventModel.id.in_(ids))
                .values(status=OUTBOX_DEAD, next_attempt_at=None)
            )
