"""Seed development data: test users, counselors, one appointment and a short thread."""
from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import date, datetime, timedelta, timezone

from counsel_service.config import settings
from counsel_service.domain.entities.appointment import Appointment
from counsel_service.domain.entities.message import Message
from counsel_service.domain.entities.user import User
from counsel_service.domain.value_objects.enums import (
    AppointmentStatus,
    MessageType,
    PaymentStatus,
    SessionType,
    UserType,
)
from counsel_service.infrastructure.db.session import init_models
from counsel_service.infrastructure.db.uow import uow_scope

logger = logging.getLogger(__name__)

_WEEKDAYS = ["monday", "tuesday", "wednesday", "thursday", "friday"]

_COUNSELORS = [
    ("Dr. Sarah", "Johnson", "sarah.test@example.com", "LIC123", "mental-health", "5 years",
     "Experienced mental health counselor with expertise in anxiety and depression.", 100, 4.8, 120),
    ("Dr. Michael", "Chen", "michael.test@example.com", "LIC124", "relationship", "8 years",
     "Specialized in relationship counseling and family therapy.", 120, 4.9, 200),
    ("Dr. Emily", "Davis", "emily.test@example.com", "LIC125", "career", "3 years",
     "Career counselor helping professionals find their path.", 90, 4.7, 80),
]

_CLIENTS = [
    ("John", "Doe", "john.test@example.com"),
    ("Jane", "Smith", "jane.test@example.com"),
]


async def seed() -> None:
    await init_models()
    now = datetime.now(timezone.utc)

    async with uow_scope() as uow:
        counselors: list[User] = []
        for i, (first, last, email, lic, spec, exp, bio, rate, rating, sessions) in enumerate(_COUNSELORS):
            counselors.append(await uow.users_w.create(User(
                id=0,
                first_name=first,
                last_name=last,
                email=email,
                phone=f"123456789{i}",
                user_type=UserType.COUNSELOR,
                avatar="",
                created_at=now,
                license_number=lic,
                specialization=spec,
                experience=exp,
                bio=bio,
                hourly_rate=float(rate),
                availability=[
                    {"day": day, "start_time": "09:00", "end_time": "17:00"} for day in _WEEKDAYS
                ],
                rating=rating,
                total_sessions=sessions,
            )))

        clients: list[User] = []
        for i, (first, last, email) in enumerate(_CLIENTS):
            clients.append(await uow.users_w.create(User(
                id=0,
                first_name=first,
                last_name=last,
                email=email,
                phone=f"555000000{i}",
                user_type=UserType.CLIENT,
                avatar="",
                created_at=now,
            )))

        client, counselor = clients[0], counselors[0]
        appointment = await uow.appointments_w.create(Appointment(
            id=uuid.uuid4(),
            client_id=client.id,
            counselor_id=counselor.id,
            session_date=date.today() + timedelta(days=1),
            time="10:00",
            session_type=SessionType.CHAT,
            status=AppointmentStatus.CONFIRMED,
            amount=counselor.hourly_rate or 0.0,
            payment_status=PaymentStatus.PENDING,
            created_at=now,
            updated_at=now,
            notes="First session",
        ))

        thread = [
            (client.id, "Hi, looking forward to our session tomorrow."),
            (counselor.id, "Hello John, me too. Is there anything you'd like to focus on?"),
            (client.id, "Mostly work stress lately."),
        ]
        for offset, (sender_id, content) in enumerate(thread):
            await uow.messages_w.create_if_not_exists(Message(
                id=uuid.uuid4(),
                appointment_id=appointment.id,
                sender_id=sender_id,
                receiver_id=appointment.other_participant(sender_id),
                content=content,
                message_type=MessageType.TEXT,
                is_read=False,
                client_msg_id=None,
                created_at=now + timedelta(seconds=offset),
            ))

        await uow.commit()

    logger.info(
        "Seeded %d counselors, %d clients, appointment %s with %d messages",
        len(counselors), len(clients), appointment.id, len(thread),
    )


def main() -> None:
    logging.basicConfig(level=settings.LOG_LEVEL)
    asyncio.run(seed())


if __name__ == "__main__":
    main()
