from __future__ import annotations

import dataclasses
import uuid
from collections.abc import Sequence
from datetime import datetime, timezone

from counsel_service.application.dto.appointment import AppointmentView, BookAppointmentDTO
from counsel_service.application.dto.message import ParticipantSummary
from counsel_service.application.dto.principal import Principal
from counsel_service.application.exceptions import (
    InvalidStateError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from counsel_service.application.policies.permissions import (
    assert_counselor_of,
    assert_participant,
)
from counsel_service.application.ports.clock import Clock, SystemClock
from counsel_service.application.uow import UnitOfWork
from counsel_service.domain.entities.appointment import Appointment
from counsel_service.domain.value_objects.enums import (
    AppointmentStatus,
    NotificationType,
    PaymentStatus,
    SessionType,
)

MEETING_HOST = "meet.google.com"

_clock: Clock = SystemClock()


async def list_appointments(principal: Principal, uow: UnitOfWork) -> list[AppointmentView]:
    if principal.is_client:
        appointments = await uow.appointments.list_for_client(principal.user_id)
    else:
        appointments = await uow.appointments.list_for_counselor(principal.user_id)
    return await build_views(appointments, uow)


async def get_appointment(
    principal: Principal,
    appointment_id: uuid.UUID,
    uow: UnitOfWork,
) -> AppointmentView:
    appointment = assert_participant(principal, await uow.appointments.get_by_id(appointment_id))
    (view,) = await build_views([appointment], uow)
    return view


async def book_appointment(
    principal: Principal,
    dto: BookAppointmentDTO,
    uow: UnitOfWork,
    clock: Clock = _clock,
) -> AppointmentView:
    """Book a session with a counselor; the price is the counselor's hourly rate."""
    if not principal.is_client:
        raise UnauthorizedError("Only clients can book appointments")

    counselor = await uow.users.get_by_id(dto.counselor_id)
    if counselor is None or not counselor.is_counselor:
        raise NotFoundError("Counselor not found")

    now = clock.now()
    appointment = Appointment(
        id=uuid.uuid4(),
        client_id=principal.user_id,
        counselor_id=counselor.id,
        session_date=dto.session_date,
        time=dto.time,
        session_type=dto.session_type.value,
        status=AppointmentStatus.SCHEDULED,
        amount=counselor.hourly_rate or 0.0,
        payment_status=PaymentStatus.PENDING,
        created_at=now,
        updated_at=now,
        notes=dto.notes,
    )
    appointment = await uow.appointments_w.create(appointment)
    await uow.commit()
    (view,) = await build_views([appointment], uow)
    return view


async def update_status(
    principal: Principal,
    appointment_id: uuid.UUID,
    status: AppointmentStatus,
    uow: UnitOfWork,
) -> Appointment:
    appointment = assert_participant(principal, await uow.appointments.get_by_id(appointment_id))
    return await _save(appointment, uow, status=status.value)


async def update_session_notes(
    principal: Principal,
    appointment_id: uuid.UUID,
    session_notes: str,
    uow: UnitOfWork,
) -> Appointment:
    if not principal.is_counselor:
        raise UnauthorizedError("Only counselors can add session notes")
    appointment = assert_counselor_of(principal, await uow.appointments.get_by_id(appointment_id))
    return await _save(appointment, uow, session_notes=session_notes)


async def share_meeting_link(
    principal: Principal,
    appointment_id: uuid.UUID,
    meeting_link: str,
    uow: UnitOfWork,
    clock: Clock = _clock,
) -> Appointment:
    """Counselor shares a Google Meet link; the appointment becomes confirmed."""
    appointment = assert_counselor_of(principal, await uow.appointments.get_by_id(appointment_id))
    if not meeting_link or MEETING_HOST not in meeting_link:
        raise ValidationError(
            "Please provide a valid Google Meet link",
            errors={"meeting_link": f"Must be a {MEETING_HOST} link"},
        )
    now = clock.now()
    notification = {
        "message": f"Meeting link shared: {meeting_link}",
        "timestamp": now.isoformat(),
        "type": NotificationType.MEETING_LINK_SHARED.value,
        "meeting_link": meeting_link,
    }
    return await _save(
        appointment,
        uow,
        meeting_link=meeting_link,
        meeting_platform="google-meet-manual",
        meeting_created_at=now,
        status=AppointmentStatus.CONFIRMED.value,
        notifications=[*appointment.notifications, notification],
    )


async def get_meeting_link(
    principal: Principal,
    appointment_id: uuid.UUID,
    uow: UnitOfWork,
) -> Appointment:
    return assert_participant(principal, await uow.appointments.get_by_id(appointment_id))


async def notify_client(
    principal: Principal,
    appointment_id: uuid.UUID,
    message: str,
    meeting_link: str,
    uow: UnitOfWork,
    clock: Clock = _clock,
) -> dict[str, str]:
    appointment = assert_counselor_of(principal, await uow.appointments.get_by_id(appointment_id))
    notification = {
        "message": message,
        "timestamp": clock.now().isoformat(),
        "type": NotificationType.MEETING_NOTIFICATION.value,
        "meeting_link": meeting_link,
    }
    await _save(appointment, uow, notifications=[*appointment.notifications, notification])
    return notification


async def start_session(
    principal: Principal,
    appointment_id: uuid.UUID,
    uow: UnitOfWork,
    clock: Clock = _clock,
) -> Appointment:
    appointment = assert_counselor_of(principal, await uow.appointments.get_by_id(appointment_id))
    if appointment.session_type == SessionType.VIDEO and not appointment.meeting_link:
        raise InvalidStateError("Meeting link not shared yet")
    return await _save(
        appointment,
        uow,
        status=AppointmentStatus.IN_PROGRESS.value,
        session_start_time=clock.now(),
    )


async def end_session(
    principal: Principal,
    appointment_id: uuid.UUID,
    uow: UnitOfWork,
    clock: Clock = _clock,
) -> tuple[Appointment, int | None]:
    """Complete the session. Returns the appointment and its length in minutes, if started."""
    appointment = assert_counselor_of(principal, await uow.appointments.get_by_id(appointment_id))
    ended_at = clock.now()
    duration: int | None = None
    if appointment.session_start_time is not None:
        duration = round((ended_at - appointment.session_start_time).total_seconds() / 60)

    changes: dict[str, object] = {
        "status": AppointmentStatus.COMPLETED.value,
        "session_end_time": ended_at,
    }
    if duration:
        changes["duration"] = duration
    return await _save(appointment, uow, **changes), duration


async def build_views(
    appointments: Sequence[Appointment],
    uow: UnitOfWork,
) -> list[AppointmentView]:
    user_ids = {a.client_id for a in appointments} | {a.counselor_id for a in appointments}
    users = await uow.users.get_many(user_ids)
    summaries = {uid: ParticipantSummary.from_user(u) for uid, u in users.items()}
    return [
        AppointmentView(
            appointment=a,
            client=summaries.get(a.client_id),
            counselor=summaries.get(a.counselor_id),
        )
        for a in appointments
    ]


async def _save(appointment: Appointment, uow: UnitOfWork, **changes: object) -> Appointment:
    updated = dataclasses.replace(
        appointment, updated_at=datetime.now(timezone.utc), **changes,  # type: ignore[arg-type]
    )
    await uow.appointments_w.update(updated)
    await uow.commit()
    return updated
