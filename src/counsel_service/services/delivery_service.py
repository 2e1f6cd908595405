"""Real-time delivery of messages persisted by the HTTP write path.

The live channel never writes messages. A ``message.send`` frame only names
the row the sender just stored over HTTP; the coordinator finds that row and
broadcasts the canonical stored representation to the appointment room, so
every participant (the sender included) converges on the same payload.

The write and the live submission race each other. A lookup that misses gets
exactly one retry after a short delay; a second miss is logged and dropped.
"""
from __future__ import annotations

import asyncio
import logging
from collections import OrderedDict
from enum import StrEnum
from typing import Any
from uuid import UUID

from counsel_service.application.dto.message import RealtimeSubmission
from counsel_service.application.dto.principal import Principal
from counsel_service.application.exceptions import AppError
from counsel_service.application.policies.permissions import assert_can_message
from counsel_service.application.ports.realtime import RoomBroadcaster
from counsel_service.application.uow import UoWFactory
from counsel_service.services import message_service

logger = logging.getLogger(__name__)

MESSAGE_CREATED_FRAME = "message.created"


class DeliveryOutcome(StrEnum):
    DELIVERED = "delivered"
    DUPLICATE = "duplicate"
    RETRY_SCHEDULED = "retry_scheduled"
    MISSED = "missed"
    REJECTED = "rejected"


class MessageDeliveryCoordinator:
    def __init__(
        self,
        rooms: RoomBroadcaster,
        uow_factory: UoWFactory,
        *,
        retry_delay: float = 0.1,
        ledger_size: int = 1024,
        notify_sender_on_miss: bool = False,
    ) -> None:
        self._rooms = rooms
        self._uow_factory = uow_factory
        self._retry_delay = retry_delay
        self._ledger_size = ledger_size
        self._notify_sender_on_miss = notify_sender_on_miss
        # message ids already broadcast, oldest first
        self._delivered: OrderedDict[UUID, None] = OrderedDict()
        self._pending: dict[str, set[asyncio.Task[DeliveryOutcome]]] = {}
        self._released: set[str] = set()

    async def submit(
        self,
        session_id: str,
        principal: Principal,
        submission: RealtimeSubmission,
    ) -> DeliveryOutcome:
        """Handle a live submission from ``session_id``.

        Gate failures (unknown appointment, non-participant, inactive status)
        are reported to the submitting session only.
        """
        try:
            async with self._uow_factory() as uow:
                appointment = await uow.appointments.get_by_id(submission.appointment_id)
                assert_can_message(principal, appointment)
                view = await message_service.find_submitted(submission, principal.user_id, uow)
        except AppError as exc:
            logger.info(
                "Rejected live submission from %s for appointment %s: %s",
                principal.principal_key, submission.appointment_id, exc.detail,
            )
            await self._rooms.send_to_session(
                session_id, "error", {"code": exc.code, "detail": exc.detail},
            )
            return DeliveryOutcome.REJECTED

        if view is not None:
            return await self.deliver(
                submission.appointment_id, view.message.id, view.to_payload(),
            )

        logger.warning(
            "Message not visible yet for appointment %s, retrying in %.0fms",
            submission.appointment_id, self._retry_delay * 1000,
        )
        self._schedule_retry(session_id, principal, submission)
        return DeliveryOutcome.RETRY_SCHEDULED

    async def deliver(
        self,
        appointment_id: UUID,
        message_id: UUID,
        payload: dict[str, Any],
    ) -> DeliveryOutcome:
        """Broadcast a stored message to its room at most once per process."""
        if message_id in self._delivered:
            logger.debug("Message %s already broadcast, skipping", message_id)
            return DeliveryOutcome.DUPLICATE
        self._delivered[message_id] = None
        while len(self._delivered) > self._ledger_size:
            self._delivered.popitem(last=False)

        reached = await self._rooms.broadcast(appointment_id, MESSAGE_CREATED_FRAME, payload)
        logger.info(
            "Broadcast message %s to room %s (%d sessions)", message_id, appointment_id, reached,
        )
        return DeliveryOutcome.DELIVERED

    def release_session(self, session_id: str) -> None:
        """Detach a closed session from its pending retries.

        The retries still run and broadcast to whoever remains in the room;
        only the miss report addressed to the closed session is dropped.
        """
        if session_id in self._pending:
            self._released.add(session_id)

    async def wait_pending(self) -> list[DeliveryOutcome]:
        """Wait for every scheduled retry."""
        tasks = [t for tasks in self._pending.values() for t in tasks]
        results = await asyncio.gather(*tasks, return_exceptions=True)
        return [r for r in results if isinstance(r, DeliveryOutcome)]

    def _schedule_retry(
        self,
        session_id: str,
        principal: Principal,
        submission: RealtimeSubmission,
    ) -> None:
        task = asyncio.create_task(
            self._retry(session_id, principal, submission),
            name=f"broadcast-retry-{session_id}",
        )
        self._pending.setdefault(session_id, set()).add(task)
        task.add_done_callback(lambda t: self._forget(session_id, t))

    def _forget(self, session_id: str, task: asyncio.Task[DeliveryOutcome]) -> None:
        pending = self._pending.get(session_id)
        if pending is None:
            return
        pending.discard(task)
        if not pending:
            del self._pending[session_id]
            self._released.discard(session_id)

    async def _retry(
        self,
        session_id: str,
        principal: Principal,
        submission: RealtimeSubmission,
    ) -> DeliveryOutcome:
        await asyncio.sleep(self._retry_delay)
        try:
            async with self._uow_factory() as uow:
                view = await message_service.find_submitted(submission, principal.user_id, uow)
        except Exception:
            logger.exception("Retry lookup failed for appointment %s", submission.appointment_id)
            return DeliveryOutcome.MISSED

        if view is None:
            logger.warning(
                "Broadcast miss: no stored message for appointment %s after retry (sender=%s)",
                submission.appointment_id, principal.principal_key,
            )
            if self._notify_sender_on_miss and session_id not in self._released:
                await self._rooms.send_to_session(
                    session_id,
                    "error",
                    {"code": "broadcast_miss", "appointment_id": str(submission.appointment_id)},
                )
            return DeliveryOutcome.MISSED

        logger.info("Found message %s on retry", view.message.id)
        return await self.deliver(submission.appointment_id, view.message.id, view.to_payload())
