from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter

from counsel_service.api.deps import CurrentPrincipal, UoWDep
from counsel_service.api.v1.schemas.appointment import (
    AppointmentResponse,
    BookAppointmentRequest,
    EndSessionResponse,
    MeetingLinkRequest,
    MeetingLinkResponse,
    NotifyClientRequest,
    SessionNotesRequest,
    UpdateStatusRequest,
)
from counsel_service.application.dto.appointment import BookAppointmentDTO
from counsel_service.services import appointment_service

router = APIRouter(prefix="/api/v1/appointments", tags=["appointments"])


@router.get("", response_model=list[AppointmentResponse])
async def list_appointments(principal: CurrentPrincipal, uow: UoWDep) -> list[AppointmentResponse]:
    views = await appointment_service.list_appointments(principal, uow)
    return [AppointmentResponse.from_view(v) for v in views]


@router.post("", response_model=AppointmentResponse, status_code=201)
async def book_appointment(
    body: BookAppointmentRequest,
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> AppointmentResponse:
    dto = BookAppointmentDTO(
        counselor_id=body.counselor_id,
        session_date=body.session_date,
        time=body.time,
        session_type=body.session_type,
        notes=body.notes,
    )
    view = await appointment_service.book_appointment(principal, dto, uow)
    return AppointmentResponse.from_view(view)


@router.get("/{appointment_id}", response_model=AppointmentResponse)
async def get_appointment(
    appointment_id: UUID,
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> AppointmentResponse:
    view = await appointment_service.get_appointment(principal, appointment_id, uow)
    return AppointmentResponse.from_view(view)


@router.patch("/{appointment_id}/status", response_model=AppointmentResponse)
async def update_status(
    appointment_id: UUID,
    body: UpdateStatusRequest,
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> AppointmentResponse:
    appointment = await appointment_service.update_status(principal, appointment_id, body.status, uow)
    return AppointmentResponse.from_entity(appointment)


@router.patch("/{appointment_id}/notes", response_model=AppointmentResponse)
async def update_session_notes(
    appointment_id: UUID,
    body: SessionNotesRequest,
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> AppointmentResponse:
    appointment = await appointment_service.update_session_notes(
        principal, appointment_id, body.session_notes, uow,
    )
    return AppointmentResponse.from_entity(appointment)


@router.post("/{appointment_id}/meeting-link", response_model=AppointmentResponse)
async def share_meeting_link(
    appointment_id: UUID,
    body: MeetingLinkRequest,
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> AppointmentResponse:
    appointment = await appointment_service.share_meeting_link(
        principal, appointment_id, body.meeting_link, uow,
    )
    return AppointmentResponse.from_entity(appointment)


@router.get("/{appointment_id}/meeting-link", response_model=MeetingLinkResponse)
async def get_meeting_link(
    appointment_id: UUID,
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> MeetingLinkResponse:
    appointment = await appointment_service.get_meeting_link(principal, appointment_id, uow)
    return MeetingLinkResponse(
        meeting_link=appointment.meeting_link or None,
        status=appointment.status,
        meeting_available=bool(appointment.meeting_link),
    )


@router.post("/{appointment_id}/notifications")
async def notify_client(
    appointment_id: UUID,
    body: NotifyClientRequest,
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> dict[str, str]:
    return await appointment_service.notify_client(
        principal, appointment_id, body.message, body.meeting_link, uow,
    )


@router.post("/{appointment_id}/start-session", response_model=AppointmentResponse)
async def start_session(
    appointment_id: UUID,
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> AppointmentResponse:
    appointment = await appointment_service.start_session(principal, appointment_id, uow)
    return AppointmentResponse.from_entity(appointment)


@router.post("/{appointment_id}/end-session", response_model=EndSessionResponse)
async def end_session(
    appointment_id: UUID,
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> EndSessionResponse:
    appointment, duration = await appointment_service.end_session(principal, appointment_id, uow)
    return EndSessionResponse(
        appointment=AppointmentResponse.from_entity(appointment),
        duration=duration,
    )
