from __future__ import annotations

from typing import Protocol
from uuid import UUID

from counsel_service.domain.entities.appointment import Appointment


class AppointmentReader(Protocol):
    async def get_by_id(self, appointment_id: UUID) -> Appointment | None: ...

    async def list_for_client(self, client_id: int) -> list[Appointment]:
        """Newest appointment date first."""
        ...

    async def list_for_counselor(self, counselor_id: int) -> list[Appointment]: ...


class AppointmentWriter(Protocol):
    async def create(self, appointment: Appointment) -> Appointment: ...

    async def update(self, appointment: Appointment) -> None:
        """Persist every mutable field of the appointment."""
        ...
