from __future__ import annotations

from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from counsel_service.domain.entities.appointment import Appointment
from counsel_service.infrastructure.db.mappers import appointment as mapper
from counsel_service.infrastructure.db.models.appointment import AppointmentModel


class AppointmentReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, appointment_id: UUID) -> Appointment | None:
        result = await self._session.get(AppointmentModel, appointment_id)
        return mapper.model_to_entity(result) if result else None

    async def list_for_client(self, client_id: int) -> list[Appointment]:
        stmt = (
            select(AppointmentModel)
            .where(AppointmentModel.client_id == client_id)
            .order_by(AppointmentModel.session_date.desc(), AppointmentModel.created_at.desc())
        )
        result = await self._session.execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().all()]

    async def list_for_counselor(self, counselor_id: int) -> list[Appointment]:
        stmt = (
            select(AppointmentModel)
            .where(AppointmentModel.counselor_id == counselor_id)
            .order_by(AppointmentModel.session_date.desc(), AppointmentModel.created_at.desc())
        )
        result = await self._session.execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().all()]


class AppointmentWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, appointment: Appointment) -> Appointment:
        model = mapper.entity_to_model(appointment)
        self._session.add(model)
        await self._session.flush()
        return mapper.model_to_entity(model)

    async def update(self, appointment: Appointment) -> None:
        stmt = (
            update(AppointmentModel)
            .where(AppointmentModel.id == appointment.id)
            .values(**mapper.mutable_values(appointment))
        )
        await self._session.execute(stmt)
