from __future__ import annotations

import pytest

from counsel_service.application.dto.principal import Principal
from counsel_service.application.exceptions import (
    InvalidStateError,
    NotFoundError,
    UnauthorizedError,
)
from counsel_service.application.policies.permissions import (
    assert_appointment_access,
    assert_can_message,
    assert_client_of,
    assert_counselor_of,
)
from counsel_service.domain.value_objects.enums import AppointmentStatus, UserType
from tests.conftest import CLIENT_ID, COUNSELOR_ID, make_appointment


def test_missing_appointment_is_not_found(client_principal):
    with pytest.raises(NotFoundError):
        assert_can_message(client_principal, None)


@pytest.mark.parametrize(
    "status",
    [AppointmentStatus.SCHEDULED, AppointmentStatus.CONFIRMED, AppointmentStatus.IN_PROGRESS],
)
def test_both_participants_may_message_active_appointment(client_principal, counselor_principal, status):
    appt = make_appointment(status=status)

    assert assert_can_message(client_principal, appt) is appt
    assert assert_can_message(counselor_principal, appt) is appt


@pytest.mark.parametrize("status", [AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED])
def test_closed_appointment_blocks_messaging(client_principal, status):
    with pytest.raises(InvalidStateError):
        assert_can_message(client_principal, make_appointment(status=status))


def test_closed_appointment_still_readable(client_principal):
    appt = make_appointment(status=AppointmentStatus.COMPLETED)
    assert assert_appointment_access(client_principal, appt) is appt


def test_non_participant_rejected():
    outsider = Principal(user_id=5, user_type=UserType.CLIENT)
    with pytest.raises(UnauthorizedError):
        assert_appointment_access(outsider, make_appointment())


def test_role_must_match_side():
    as_client = Principal(user_id=COUNSELOR_ID, user_type=UserType.CLIENT)
    as_counselor = Principal(user_id=CLIENT_ID, user_type=UserType.COUNSELOR)
    appt = make_appointment()

    with pytest.raises(UnauthorizedError):
        assert_appointment_access(as_client, appt)
    with pytest.raises(UnauthorizedError):
        assert_appointment_access(as_counselor, appt)


def test_counselor_and_client_only_checks(client_principal, counselor_principal):
    appt = make_appointment()

    assert assert_counselor_of(counselor_principal, appt) is appt
    assert assert_client_of(client_principal, appt) is appt
    with pytest.raises(UnauthorizedError):
        assert_counselor_of(client_principal, appt)
    with pytest.raises(UnauthorizedError):
        assert_client_of(counselor_principal, appt)
