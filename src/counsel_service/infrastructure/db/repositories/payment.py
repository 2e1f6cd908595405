from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from counsel_service.domain.entities.payment import Payment
from counsel_service.infrastructure.db.mappers import payment as mapper
from counsel_service.infrastructure.db.models.payment import PaymentModel


class PaymentReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_for_client(self, client_id: int) -> list[Payment]:
        stmt = (
            select(PaymentModel)
            .where(PaymentModel.client_id == client_id)
            .order_by(PaymentModel.created_at.desc())
        )
        result = await self._session.execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().all()]

    async def list_for_counselor(self, counselor_id: int) -> list[Payment]:
        stmt = (
            select(PaymentModel)
            .where(PaymentModel.counselor_id == counselor_id)
            .order_by(PaymentModel.created_at.desc())
        )
        result = await self._session.execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().all()]


class PaymentWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, payment: Payment) -> Payment:
        model = mapper.entity_to_model(payment)
        self._session.add(model)
        await self._session.flush()
        return mapper.model_to_entity(model)
