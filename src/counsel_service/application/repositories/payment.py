from __future__ import annotations

from typing import Protocol

from counsel_service.domain.entities.payment import Payment


class PaymentReader(Protocol):
    async def list_for_client(self, client_id: int) -> list[Payment]:
        """Newest first."""
        ...

    async def list_for_counselor(self, counselor_id: int) -> list[Payment]: ...


class PaymentWriter(Protocol):
    async def create(self, payment: Payment) -> Payment: ...
