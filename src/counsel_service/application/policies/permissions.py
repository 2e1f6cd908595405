from __future__ import annotations

from collections.abc import Collection

from counsel_service.application.dto.principal import Principal
from counsel_service.application.exceptions import (
    InvalidStateError,
    NotFoundError,
    UnauthorizedError,
)
from counsel_service.domain.entities.appointment import Appointment
from counsel_service.domain.value_objects.enums import ACTIVE_APPOINTMENT_STATUSES


def assert_participant(
    principal: Principal,
    appointment: Appointment | None,
) -> Appointment:
    """Raise if the appointment doesn't exist or principal is on neither side."""
    if appointment is None:
        raise NotFoundError("Appointment not found")
    if principal.user_id not in (appointment.client_id, appointment.counselor_id):
        raise UnauthorizedError("Not authorized to access this appointment")
    return appointment


def assert_appointment_access(
    principal: Principal,
    appointment: Appointment | None,
) -> Appointment:
    """Participant check plus the declared role must match the occupied side."""
    appointment = assert_participant(principal, appointment)
    if principal.is_client and principal.user_id != appointment.client_id:
        raise UnauthorizedError("Client can only access their own appointments")
    if principal.is_counselor and principal.user_id != appointment.counselor_id:
        raise UnauthorizedError("Counselor can only access their own appointments")
    return appointment


def assert_can_message(
    principal: Principal,
    appointment: Appointment | None,
    active_statuses: Collection[str] = ACTIVE_APPOINTMENT_STATUSES,
) -> Appointment:
    """Gate shared by the HTTP write path and the real-time path."""
    appointment = assert_appointment_access(principal, appointment)
    if appointment.status not in active_statuses:
        raise InvalidStateError("Cannot send messages for this appointment status")
    return appointment


def assert_counselor_of(principal: Principal, appointment: Appointment | None) -> Appointment:
    if appointment is None:
        raise NotFoundError("Appointment not found")
    if principal.user_id != appointment.counselor_id:
        raise UnauthorizedError("Not authorized")
    return appointment


def assert_client_of(principal: Principal, appointment: Appointment | None) -> Appointment:
    if appointment is None:
        raise NotFoundError("Appointment not found")
    if principal.user_id != appointment.client_id:
        raise UnauthorizedError("Not authorized")
    return appointment
