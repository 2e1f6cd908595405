from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import BigInteger, Identity, Index, SmallInteger, String, text
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP
from sqlalchemy.orm import Mapped, mapped_column

from counsel_service.infrastructure.db.base import Base

OUTBOX_PENDING = "pending"
OUTBOX_IN_FLIGHT = "in_flight"
OUTBOX_PUBLISHED = "published"
OUTBOX_FAILED = "failed"
# gave up after OUTBOX_MAX_ATTEMPTS; never fetched again
OUTBOX_DEAD = "dead"


class OutboxEventModel(Base):
    """Events committed with the data they describe, published by the outbox worker."""

    __tablename__ = "outbox_events"

    id: Mapped[int] = mapped_column(BigInteger, Identity(always=True), primary_key=True)
    event_type: Mapped[str] = mapped_column(String(64), nullable=False)
    payload: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, server_default=text(f"'{OUTBOX_PENDING}'"))
    attempts: Mapped[int] = mapped_column(SmallInteger, nullable=False, server_default=text("0"))
    next_attempt_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True))
    published_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True))
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), nullable=False, server_default=text("now()"),
    )

    __table_args__ = (
        Index(
            "ix_outbox_events_due",
            "next_attempt_at",
            "id",
            postgresql_where=text(f"status IN ('{OUTBOX_PENDING}', '{OUTBOX_FAILED}')"),
        ),
    )
