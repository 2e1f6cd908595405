from __future__ import annotations

import datetime as dt
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field

from counsel_service.api.v1.schemas.user import ParticipantSummaryResponse
from counsel_service.application.dto.appointment import AppointmentView
from counsel_service.domain.entities.appointment import Appointment
from counsel_service.domain.value_objects.enums import AppointmentStatus, SessionType


class BookAppointmentRequest(BaseModel):
    counselor_id: int
    session_date: dt.date
    time: str = Field(min_length=1)
    session_type: SessionType
    notes: str = ""


class UpdateStatusRequest(BaseModel):
    status: AppointmentStatus


class SessionNotesRequest(BaseModel):
    session_notes: str


class MeetingLinkRequest(BaseModel):
    meeting_link: str


class MeetingLinkResponse(BaseModel):
    meeting_link: str | None
    status: str
    meeting_available: bool


class NotifyClientRequest(BaseModel):
    message: str = Field(min_length=1)
    meeting_link: str = ""


class AppointmentResponse(BaseModel):
    id: UUID
    client_id: int
    counselor_id: int
    client: ParticipantSummaryResponse | None = None
    counselor: ParticipantSummaryResponse | None = None
    session_date: dt.date
    time: str
    duration: int
    session_type: str
    status: str
    notes: str
    amount: float
    payment_status: str
    session_notes: str
    meeting_link: str
    meeting_platform: str | None
    session_start_time: dt.datetime | None
    session_end_time: dt.datetime | None
    notifications: list[dict[str, Any]]
    created_at: dt.datetime
    updated_at: dt.datetime

    model_config = {"from_attributes": True}

    @classmethod
    def from_view(cls, view: AppointmentView) -> AppointmentResponse:
        resp = cls.from_entity(view.appointment)
        resp.client = (
            ParticipantSummaryResponse.model_validate(view.client, from_attributes=True)
            if view.client else None
        )
        resp.counselor = (
            ParticipantSummaryResponse.model_validate(view.counselor, from_attributes=True)
            if view.counselor else None
        )
        return resp

    @classmethod
    def from_entity(cls, appointment: Appointment) -> AppointmentResponse:
        return cls.model_validate(appointment, from_attributes=True)


class EndSessionResponse(BaseModel):
    appointment: AppointmentResponse
    duration: int | None
