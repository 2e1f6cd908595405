from __future__ import annotations

from contextlib import AbstractAsyncContextManager
from typing import Callable, Protocol

from counsel_service.application.repositories.appointment import (
    AppointmentReader,
    AppointmentWriter,
)
from counsel_service.application.repositories.message import MessageReader, MessageWriter
from counsel_service.application.repositories.outbox import OutboxWriter
from counsel_service.application.repositories.payment import PaymentReader, PaymentWriter
from counsel_service.application.repositories.user import UserReader, UserWriter


class UnitOfWork(Protocol):
    users: UserReader
    users_w: UserWriter
    appointments: AppointmentReader
    appointments_w: AppointmentWriter
    messages: MessageReader
    messages_w: MessageWriter
    payments: PaymentReader
    payments_w: PaymentWriter
    outbox: OutboxWriter

    async def commit(self) -> None: ...
    async def rollback(self) -> None: ...
    async def flush(self) -> None: ...


# Opens a fresh unit of work; used outside the request scope (WebSocket, workers)
UoWFactory = Callable[[], AbstractAsyncContextManager[UnitOfWork]]
