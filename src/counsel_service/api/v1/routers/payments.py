from __future__ import annotations

from fastapi import APIRouter

from counsel_service.api.deps import CurrentPrincipal, UoWDep
from counsel_service.api.v1.schemas.payment import PaymentResponse, ProcessPaymentRequest
from counsel_service.services import payment_service

router = APIRouter(prefix="/api/v1/payments", tags=["payments"])


@router.post("", response_model=PaymentResponse, status_code=201)
async def process_payment(
    body: ProcessPaymentRequest,
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> PaymentResponse:
    payment = await payment_service.process_payment(
        principal, body.appointment_id, body.payment_method, uow,
    )
    return PaymentResponse.model_validate(payment, from_attributes=True)


@router.get("", response_model=list[PaymentResponse])
async def list_payments(principal: CurrentPrincipal, uow: UoWDep) -> list[PaymentResponse]:
    payments = await payment_service.list_payments(principal, uow)
    return [PaymentResponse.model_validate(p, from_attributes=True) for p in payments]
