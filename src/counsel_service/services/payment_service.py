from __future__ import annotations

import dataclasses
import secrets
import uuid

from counsel_service.application.dto.principal import Principal
from counsel_service.application.policies.permissions import assert_client_of
from counsel_service.application.ports.clock import Clock, SystemClock
from counsel_service.application.uow import UnitOfWork
from counsel_service.domain.entities.payment import Payment
from counsel_service.domain.value_objects.enums import (
    PaymentMethod,
    PaymentStatus,
    TransactionStatus,
)

_clock: Clock = SystemClock()


def _transaction_id(clock: Clock) -> str:
    return f"txn_{int(clock.now().timestamp() * 1000)}_{secrets.token_hex(5)}"


async def process_payment(
    principal: Principal,
    appointment_id: uuid.UUID,
    payment_method: PaymentMethod,
    uow: UnitOfWork,
    clock: Clock = _clock,
) -> Payment:
    """Record a payment for the caller's appointment and mark it paid.

    There is no gateway behind this: every payment is recorded as completed.
    """
    appointment = assert_client_of(principal, await uow.appointments.get_by_id(appointment_id))

    payment = Payment(
        id=uuid.uuid4(),
        client_id=principal.user_id,
        counselor_id=appointment.counselor_id,
        appointment_id=appointment.id,
        amount=appointment.amount,
        currency="USD",
        payment_method=payment_method.value,
        status=TransactionStatus.COMPLETED,
        transaction_id=_transaction_id(clock),
        created_at=clock.now(),
    )
    payment = await uow.payments_w.create(payment)
    await uow.appointments_w.update(
        dataclasses.replace(appointment, payment_status=PaymentStatus.PAID.value, updated_at=clock.now())
    )
    await uow.commit()
    return payment


async def list_payments(principal: Principal, uow: UnitOfWork) -> list[Payment]:
    if principal.is_client:
        return await uow.payments.list_for_client(principal.user_id)
    return await uow.payments.list_for_counselor(principal.user_id)
