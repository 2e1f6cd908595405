from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True, slots=True)
class Payment:
    id: UUID
    client_id: int
    counselor_id: int
    appointment_id: UUID
    amount: float
    currency: str
    payment_method: str
    status: str
    transaction_id: str
    created_at: datetime
    refund_amount: float = 0.0
    refund_reason: str | None = None
