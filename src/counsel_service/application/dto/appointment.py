from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from counsel_service.application.dto.message import ParticipantSummary
from counsel_service.domain.entities.appointment import Appointment
from counsel_service.domain.value_objects.enums import SessionType


@dataclass(frozen=True, slots=True)
class BookAppointmentDTO:
    counselor_id: int
    session_date: date
    time: str
    session_type: SessionType
    notes: str = ""


@dataclass(frozen=True, slots=True)
class AppointmentView:
    appointment: Appointment
    client: ParticipantSummary | None
    counselor: ParticipantSummary | None
