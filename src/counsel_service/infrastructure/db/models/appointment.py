from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Any

from sqlalchemy import BigInteger, Date, Float, ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from counsel_service.infrastructure.db.base import Base


class AppointmentModel(Base):
    __tablename__ = "appointments"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        server_default=text("gen_random_uuid()"),
    )
    client_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id"), nullable=False)
    counselor_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id"), nullable=False)
    session_date: Mapped[date] = mapped_column(Date, nullable=False)
    time: Mapped[str] = mapped_column(String(20), nullable=False)
    duration: Mapped[int] = mapped_column(Integer, nullable=False, default=50, server_default=text("50"))
    session_type: Mapped[str] = mapped_column(String(20), nullable=False)  # video | chat | email
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="scheduled")
    notes: Mapped[str] = mapped_column(Text, nullable=False, default="", server_default=text("''"))
    amount: Mapped[float] = mapped_column(Float, nullable=False)
    payment_status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    session_notes: Mapped[str] = mapped_column(Text, nullable=False, default="", server_default=text("''"))

    meeting_link: Mapped[str] = mapped_column(String(500), nullable=False, default="", server_default=text("''"))
    meeting_platform: Mapped[str | None] = mapped_column(String(50), nullable=True)
    meeting_created_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    session_start_time: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    session_end_time: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    notifications: Mapped[list[dict[str, Any]]] = mapped_column(
        JSONB, nullable=False, default=list, server_default=text("'[]'::jsonb"),
    )

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=text("now()"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=text("now()"),
        onupdate=text("now()"),
    )

    messages = relationship("MessageModel", back_populates="appointment", lazy="noload")

    __table_args__ = (
        Index("ix_appointments_client_date", "client_id", session_date.desc()),
        Index("ix_appointments_counselor_date", "counselor_id", session_date.desc()),
        Index("ix_appointments_status_date", "status", "session_date"),
    )
