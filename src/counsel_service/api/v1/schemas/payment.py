from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from counsel_service.domain.value_objects.enums import PaymentMethod


class ProcessPaymentRequest(BaseModel):
    appointment_id: UUID
    payment_method: PaymentMethod


class PaymentResponse(BaseModel):
    id: UUID
    client_id: int
    counselor_id: int
    appointment_id: UUID
    amount: float
    currency: str
    payment_method: str
    status: str
    transaction_id: str
    refund_amount: float
    refund_reason: str | None
    created_at: datetime

    model_config = {"from_attributes": True}
