"""Shared test fixtures."""
from __future__ import annotations

import dataclasses
import json
import uuid
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Any
from uuid import UUID

import pytest

from counsel_service.application.dto.pagination import MessageCursor
from counsel_service.application.dto.principal import Principal
from counsel_service.application.repositories.outbox import OutboxRecord
from counsel_service.domain.entities.appointment import Appointment
from counsel_service.domain.entities.message import Message
from counsel_service.domain.entities.payment import Payment
from counsel_service.domain.entities.user import User
from counsel_service.domain.value_objects.enums import (
    AppointmentStatus,
    MessageType,
    PaymentStatus,
    SessionType,
    UserType,
)

CLIENT_ID = 42
COUNSELOR_ID = 7


@pytest.fixture
def client_principal() -> Principal:
    return Principal(user_id=CLIENT_ID, user_type=UserType.CLIENT)


@pytest.fixture
def counselor_principal() -> Principal:
    return Principal(user_id=COUNSELOR_ID, user_type=UserType.COUNSELOR)


def make_user(
    user_id: int,
    *,
    user_type: str = UserType.CLIENT,
    first_name: str = "Test",
    hourly_rate: float | None = None,
) -> User:
    return User(
        id=user_id,
        first_name=first_name,
        last_name=f"User{user_id}",
        email=f"user{user_id}@example.com",
        phone="1234567890",
        user_type=user_type,
        avatar="",
        created_at=datetime.now(timezone.utc),
        hourly_rate=hourly_rate,
    )


def make_appointment(
    *,
    appointment_id: UUID | None = None,
    client_id: int = CLIENT_ID,
    counselor_id: int = COUNSELOR_ID,
    status: str = AppointmentStatus.CONFIRMED,
    session_type: str = SessionType.CHAT,
    meeting_link: str = "",
) -> Appointment:
    now = datetime.now(timezone.utc)
    return Appointment(
        id=appointment_id or uuid.uuid4(),
        client_id=client_id,
        counselor_id=counselor_id,
        session_date=date.today() + timedelta(days=1),
        time="10:00",
        session_type=session_type,
        status=status,
        amount=100.0,
        payment_status=PaymentStatus.PENDING,
        created_at=now,
        updated_at=now,
        meeting_link=meeting_link,
    )


def make_message(
    *,
    appointment_id: UUID,
    sender_id: int = CLIENT_ID,
    receiver_id: int = COUNSELOR_ID,
    content: str = "hello",
    client_msg_id: UUID | None = None,
    created_at: datetime | None = None,
) -> Message:
    return Message(
        id=uuid.uuid4(),
        appointment_id=appointment_id,
        sender_id=sender_id,
        receiver_id=receiver_id,
        content=content,
        message_type=MessageType.TEXT,
        is_read=False,
        client_msg_id=client_msg_id,
        created_at=created_at or datetime.now(timezone.utc),
    )


class FakeWebSocket:
    def __init__(self, *, broken: bool = False) -> None:
        self.accepted = False
        self.sent: list[dict] = []
        self._broken = broken

    async def accept(self) -> None:
        self.accepted = True

    async def send_text(self, raw: str) -> None:
        if self._broken:
            raise RuntimeError("socket closed")
        self.sent.append(json.loads(raw))


class FixedClock:
    def __init__(self, now: datetime) -> None:
        self.current = now

    def now(self) -> datetime:
        return self.current


@dataclass
class FakeUserReader:
    _store: dict[int, User] = field(default_factory=dict)

    async def get_by_id(self, user_id: int) -> User | None:
        return self._store.get(user_id)

    async def get_many(self, user_ids: Iterable[int]) -> dict[int, User]:
        return {uid: self._store[uid] for uid in user_ids if uid in self._store}

    async def list_counselors(self) -> list[User]:
        return [u for u in self._store.values() if u.is_counselor and u.is_active]


@dataclass
class FakeUserWriter:
    _reader: FakeUserReader

    async def create(self, user: User) -> User:
        user = dataclasses.replace(user, id=user.id or len(self._reader._store) + 1)
        self._reader._store[user.id] = user
        return user


@dataclass
class FakeAppointmentReader:
    _store: dict[UUID, Appointment] = field(default_factory=dict)

    async def get_by_id(self, appointment_id: UUID) -> Appointment | None:
        return self._store.get(appointment_id)

    async def list_for_client(self, client_id: int) -> list[Appointment]:
        return [a for a in self._store.values() if a.client_id == client_id]

    async def list_for_counselor(self, counselor_id: int) -> list[Appointment]:
        return [a for a in self._store.values() if a.counselor_id == counselor_id]


@dataclass
class FakeAppointmentWriter:
    _reader: FakeAppointmentReader

    async def create(self, appointment: Appointment) -> Appointment:
        self._reader._store[appointment.id] = appointment
        return appointment

    async def update(self, appointment: Appointment) -> None:
        self._reader._store[appointment.id] = appointment


@dataclass
class FakeMessageReader:
    _messages: list[Message] = field(default_factory=list)

    def add(self, message: Message) -> Message:
        """Store a message as the write path would, assigning its insertion order."""
        message = dataclasses.replace(message, seq=len(self._messages) + 1)
        self._messages.append(message)
        return message

    async def list_messages(
        self,
        appointment_id: UUID,
        *,
        cursor: MessageCursor | None = None,
        limit: int = 50,
    ) -> list[Message]:
        rows = [m for m in self._messages if m.appointment_id == appointment_id]
        rows.sort(key=lambda m: (m.created_at, m.seq))
        if cursor is not None:
            rows = [m for m in rows if (m.created_at, m.seq) > (cursor.created_at, cursor.seq)]
        return rows[:limit]

    async def find_latest_by_content(self, appointment_id: UUID, content: str) -> Message | None:
        rows = [
            m for m in self._messages
            if m.appointment_id == appointment_id and m.content == content
        ]
        return max(rows, key=lambda m: (m.created_at, m.seq), default=None)

    async def get_by_client_msg_id(
        self,
        appointment_id: UUID,
        sender_id: int,
        client_msg_id: UUID,
    ) -> Message | None:
        for m in self._messages:
            if (
                m.appointment_id == appointment_id
                and m.sender_id == sender_id
                and m.client_msg_id == client_msg_id
            ):
                return m
        return None

    async def count_unread(self, receiver_id: int) -> int:
        return sum(1 for m in self._messages if m.receiver_id == receiver_id and not m.is_read)


@dataclass
class FakeMessageWriter:
    _reader: FakeMessageReader

    async def create_if_not_exists(self, message: Message) -> tuple[Message, bool]:
        if message.client_msg_id is not None:
            existing = await self._reader.get_by_client_msg_id(
                message.appointment_id, message.sender_id, message.client_msg_id,
            )
            if existing is not None:
                return existing, False
        return self._reader.add(message), True

    async def mark_read(self, appointment_id: UUID, receiver_id: int) -> int:
        modified = 0
        for i, m in enumerate(self._reader._messages):
            if m.appointment_id == appointment_id and m.receiver_id == receiver_id and not m.is_read:
                self._reader._messages[i] = dataclasses.replace(m, is_read=True)
                modified += 1
        return modified


@dataclass
class FakePaymentReader:
    _payments: list[Payment] = field(default_factory=list)

    async def list_for_client(self, client_id: int) -> list[Payment]:
        return [p for p in reversed(self._payments) if p.client_id == client_id]

    async def list_for_counselor(self, counselor_id: int) -> list[Payment]:
        return [p for p in reversed(self._payments) if p.counselor_id == counselor_id]


@dataclass
class FakePaymentWriter:
    _reader: FakePaymentReader

    async def create(self, payment: Payment) -> Payment:
        self._reader._payments.append(payment)
        return payment


@dataclass
class FakeOutboxWriter:
    _records: list[dict[str, Any]] = field(default_factory=list)
    _sent: list[int] = field(default_factory=list)
    _failed: list[int] = field(default_factory=list)
    _dead: list[int] = field(default_factory=list)

    async def add(self, event_type: str, payload: dict[str, Any]) -> None:
        self._records.append({"event_type": event_type, "payload": payload})

    async def fetch_pending(self, batch_size: int) -> list[OutboxRecord]:
        pending = [
            OutboxRecord(id=i, event_type=r["event_type"], payload=r["payload"], attempts=r.get("attempts", 0))
            for i, r in enumerate(self._records, start=1)
            if i not in self._sent and i not in self._dead
        ]
        return pending[:batch_size]

    async def mark_sent(self, ids: list[int]) -> None:
        self._sent.extend(ids)

    async def mark_failed(self, record_id: int, next_retry_at: datetime) -> None:
        self._failed.append(record_id)

    async def mark_dead(self, ids: list[int]) -> None:
        self._dead.extend(ids)


@dataclass
class FakeUoW:
    """In-memory UoW for unit tests. Also usable as its own async context manager."""
    users: FakeUserReader = field(default_factory=FakeUserReader)
    users_w: FakeUserWriter | None = None
    appointments: FakeAppointmentReader = field(default_factory=FakeAppointmentReader)
    appointments_w: FakeAppointmentWriter | None = None
    messages: FakeMessageReader = field(default_factory=FakeMessageReader)
    messages_w: FakeMessageWriter | None = None
    payments: FakePaymentReader = field(default_factory=FakePaymentReader)
    payments_w: FakePaymentWriter | None = None
    outbox: FakeOutboxWriter = field(default_factory=FakeOutboxWriter)
    _committed: bool = False

    def __post_init__(self) -> None:
        if self.users_w is None:
            self.users_w = FakeUserWriter(self.users)
        if self.appointments_w is None:
            self.appointments_w = FakeAppointmentWriter(self.appointments)
        if self.messages_w is None:
            self.messages_w = FakeMessageWriter(self.messages)
        if self.payments_w is None:
            self.payments_w = FakePaymentWriter(self.payments)

    def seed(self, *items: User | Appointment) -> FakeUoW:
        for item in items:
            if isinstance(item, User):
                self.users._store[item.id] = item
            else:
                self.appointments._store[item.id] = item
        return self

    async def flush(self) -> None:
        pass

    async def commit(self) -> None:
        self._committed = True

    async def rollback(self) -> None:
        pass

    async def __aenter__(self) -> FakeUoW:
        return self

    async def __aexit__(self, *exc: object) -> None:
        pass


def make_seeded_uow(appointment: Appointment | None = None) -> tuple[FakeUoW, Appointment]:
    """UoW holding one client, one counselor and an appointment between them."""
    appointment = appointment or make_appointment()
    uow = FakeUoW().seed(
        make_user(appointment.client_id, first_name="Casey"),
        make_user(appointment.counselor_id, user_type=UserType.COUNSELOR, first_name="Sam", hourly_rate=100.0),
        appointment,
    )
    return uow, appointment
