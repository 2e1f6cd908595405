from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass, field
from typing import Any
from uuid import UUID

import pytest

from counsel_service.application.dto.message import RealtimeSubmission, SendMessageDTO
from counsel_service.application.dto.principal import Principal
from counsel_service.domain.value_objects.enums import AppointmentStatus, UserType
from counsel_service.infrastructure.ws.manager import RoomRegistry
from counsel_service.services import message_service
from counsel_service.services.delivery_service import (
    MESSAGE_CREATED_FRAME,
    DeliveryOutcome,
    MessageDeliveryCoordinator,
)
from tests.conftest import (
    FakeUoW,
    FakeWebSocket,
    make_appointment,
    make_message,
    make_seeded_uow,
)

SESSION = "session-1"


@dataclass
class FakeRooms:
    broadcasts: list[tuple[UUID, str, dict[str, Any]]] = field(default_factory=list)
    direct: list[tuple[str, str, dict[str, Any]]] = field(default_factory=list)

    async def broadcast(
        self,
        appointment_id: UUID,
        event_type: str,
        data: dict[str, Any],
        *,
        exclude: str | None = None,
    ) -> int:
        self.broadcasts.append((appointment_id, event_type, data))
        return 2

    async def send_to_session(self, session_id: str, event_type: str, data: dict[str, Any]) -> None:
        self.direct.append((session_id, event_type, data))

    def broadcast_ids(self) -> list[str]:
        return [data["id"] for _, _, data in self.broadcasts]


def _coordinator(uow: FakeUoW, rooms: FakeRooms, **kwargs: Any) -> MessageDeliveryCoordinator:
    kwargs.setdefault("retry_delay", 0.01)
    return MessageDeliveryCoordinator(rooms, lambda: uow, **kwargs)


async def _write(principal: Principal, uow: FakeUoW, appointment_id: UUID, content: str, **kw: Any):
    view, _ = await message_service.send_message(
        principal, SendMessageDTO(appointment_id=appointment_id, content=content, **kw), uow,
    )
    return view


@pytest.mark.asyncio
async def test_submission_after_write_broadcasts_stored_row_once(client_principal):
    uow, appt = make_seeded_uow()
    rooms = FakeRooms()
    coordinator = _coordinator(uow, rooms)
    stored = await _write(client_principal, uow, appt.id, "Hello")

    outcome = await coordinator.submit(
        SESSION, client_principal, RealtimeSubmission(appointment_id=appt.id, content="Hello"),
    )

    assert outcome is DeliveryOutcome.DELIVERED
    assert len(rooms.broadcasts) == 1
    room, frame, payload = rooms.broadcasts[0]
    assert room == appt.id
    assert frame == MESSAGE_CREATED_FRAME
    assert payload == stored.to_payload()
    assert payload["sender"]["first_name"] == "Casey"
    assert payload["receiver"]["first_name"] == "Sam"
    assert rooms.direct == []


@pytest.mark.asyncio
async def test_submission_content_is_trimmed_before_lookup(client_principal):
    uow, appt = make_seeded_uow()
    rooms = FakeRooms()
    stored = await _write(client_principal, uow, appt.id, "  Hello ")

    await _coordinator(uow, rooms).submit(
        SESSION, client_principal, RealtimeSubmission(appointment_id=appt.id, content="Hello  "),
    )

    assert rooms.broadcast_ids() == [str(stored.message.id)]


@pytest.mark.asyncio
async def test_submission_before_write_found_on_retry(client_principal):
    uow, appt = make_seeded_uow()
    rooms = FakeRooms()
    coordinator = _coordinator(uow, rooms)

    outcome = await coordinator.submit(
        SESSION, client_principal, RealtimeSubmission(appointment_id=appt.id, content="Hi"),
    )
    assert outcome is DeliveryOutcome.RETRY_SCHEDULED
    assert rooms.broadcasts == []

    stored = await _write(client_principal, uow, appt.id, "Hi")

    assert await coordinator.wait_pending() == [DeliveryOutcome.DELIVERED]
    assert rooms.broadcast_ids() == [str(stored.message.id)]


@pytest.mark.asyncio
async def test_write_never_lands_gives_broadcast_miss(client_principal, caplog):
    uow, appt = make_seeded_uow()
    rooms = FakeRooms()
    coordinator = _coordinator(uow, rooms)

    await coordinator.submit(
        SESSION, client_principal, RealtimeSubmission(appointment_id=appt.id, content="lost"),
    )

    assert await coordinator.wait_pending() == [DeliveryOutcome.MISSED]
    assert rooms.broadcasts == []
    assert rooms.direct == []
    assert any("Broadcast miss" in r.getMessage() for r in caplog.records)


@pytest.mark.asyncio
async def test_broadcast_miss_can_be_reported_to_sender(client_principal):
    uow, appt = make_seeded_uow()
    rooms = FakeRooms()
    coordinator = _coordinator(uow, rooms, notify_sender_on_miss=True)

    await coordinator.submit(
        SESSION, client_principal, RealtimeSubmission(appointment_id=appt.id, content="lost"),
    )
    await coordinator.wait_pending()

    assert rooms.broadcasts == []
    assert rooms.direct == [
        (SESSION, "error", {"code": "broadcast_miss", "appointment_id": str(appt.id)}),
    ]


@pytest.mark.asyncio
async def test_unknown_appointment_errors_to_submitter_only(client_principal):
    uow, _ = make_seeded_uow()
    rooms = FakeRooms()

    outcome = await _coordinator(uow, rooms).submit(
        SESSION, client_principal, RealtimeSubmission(appointment_id=uuid.uuid4(), content="x"),
    )

    assert outcome is DeliveryOutcome.REJECTED
    assert rooms.broadcasts == []
    assert len(rooms.direct) == 1
    session_id, frame, data = rooms.direct[0]
    assert (session_id, frame, data["code"]) == (SESSION, "error", "not_found")


@pytest.mark.asyncio
async def test_non_participant_rejected_as_unauthorized():
    uow, appt = make_seeded_uow()
    rooms = FakeRooms()
    outsider = Principal(user_id=1000, user_type=UserType.CLIENT)
    uow.messages.add(make_message(appointment_id=appt.id, content="secret"))

    outcome = await _coordinator(uow, rooms).submit(
        SESSION, outsider, RealtimeSubmission(appointment_id=appt.id, content="secret"),
    )

    assert outcome is DeliveryOutcome.REJECTED
    assert rooms.broadcasts == []
    assert rooms.direct[0][2]["code"] == "unauthorized"


@pytest.mark.asyncio
async def test_role_mismatch_rejected():
    uow, appt = make_seeded_uow()
    rooms = FakeRooms()
    # counselor 7 claiming to be a client
    impostor = Principal(user_id=appt.counselor_id, user_type=UserType.CLIENT)

    outcome = await _coordinator(uow, rooms).submit(
        SESSION, impostor, RealtimeSubmission(appointment_id=appt.id, content="hi"),
    )

    assert outcome is DeliveryOutcome.REJECTED
    assert rooms.direct[0][2]["code"] == "unauthorized"


@pytest.mark.asyncio
async def test_inactive_appointment_rejected(client_principal):
    uow, appt = make_seeded_uow(make_appointment(status=AppointmentStatus.COMPLETED))
    rooms = FakeRooms()
    uow.messages.add(make_message(appointment_id=appt.id, content="late"))

    outcome = await _coordinator(uow, rooms).submit(
        SESSION, client_principal, RealtimeSubmission(appointment_id=appt.id, content="late"),
    )

    assert outcome is DeliveryOutcome.REJECTED
    assert rooms.broadcasts == []
    assert rooms.direct[0][2]["code"] == "invalid_state"


@pytest.mark.asyncio
async def test_repeated_submissions_never_rebroadcast(client_principal):
    uow, appt = make_seeded_uow()
    rooms = FakeRooms()
    coordinator = _coordinator(uow, rooms)
    await _write(client_principal, uow, appt.id, "once")
    submission = RealtimeSubmission(appointment_id=appt.id, content="once")

    first = await coordinator.submit(SESSION, client_principal, submission)
    second = await coordinator.submit(SESSION, client_principal, submission)

    assert first is DeliveryOutcome.DELIVERED
    assert second is DeliveryOutcome.DUPLICATE
    assert len(rooms.broadcasts) == 1


@pytest.mark.asyncio
async def test_write_path_push_and_live_submission_converge(client_principal):
    uow, appt = make_seeded_uow()
    rooms = FakeRooms()
    coordinator = _coordinator(uow, rooms)
    stored = await _write(client_principal, uow, appt.id, "both paths")
    event = uow.outbox._records[0]["payload"]

    pushed = await coordinator.deliver(
        UUID(event["appointment_id"]), UUID(event["message_id"]), event["message"],
    )
    live = await coordinator.submit(
        SESSION, client_principal, RealtimeSubmission(appointment_id=appt.id, content="both paths"),
    )

    assert pushed is DeliveryOutcome.DELIVERED
    assert live is DeliveryOutcome.DUPLICATE
    assert rooms.broadcast_ids() == [str(stored.message.id)]


@pytest.mark.asyncio
async def test_client_msg_id_resolves_exact_row(client_principal):
    uow, appt = make_seeded_uow()
    rooms = FakeRooms()
    cmid = uuid.uuid4()
    tagged = await _write(client_principal, uow, appt.id, "dup", client_msg_id=cmid)
    await _write(client_principal, uow, appt.id, "dup")

    await _coordinator(uow, rooms).submit(
        SESSION,
        client_principal,
        RealtimeSubmission(appointment_id=appt.id, content="dup", client_msg_id=cmid),
    )

    assert rooms.broadcast_ids() == [str(tagged.message.id)]


@pytest.mark.asyncio
async def test_retry_still_reaches_room_after_sender_disconnects(client_principal, counselor_principal):
    uow, appt = make_seeded_uow()
    registry = RoomRegistry()
    ws_client, ws_counselor = FakeWebSocket(), FakeWebSocket()
    sender = await registry.connect(ws_client, client_principal)
    listener = await registry.connect(ws_counselor, counselor_principal)
    registry.join(appt.id, sender.id)
    registry.join(appt.id, listener.id)
    coordinator = MessageDeliveryCoordinator(registry, lambda: uow, retry_delay=0.02)

    await coordinator.submit(
        sender.id, client_principal, RealtimeSubmission(appointment_id=appt.id, content="Hello"),
    )
    stored = await _write(client_principal, uow, appt.id, "Hello")
    coordinator.release_session(sender.id)
    registry.disconnect(sender.id)

    assert await coordinator.wait_pending() == [DeliveryOutcome.DELIVERED]
    assert ws_counselor.sent == [{"type": MESSAGE_CREATED_FRAME, "data": stored.to_payload()}]
    assert ws_client.sent == []


@pytest.mark.asyncio
async def test_released_session_gets_no_miss_report(client_principal):
    uow, appt = make_seeded_uow()
    rooms = FakeRooms()
    coordinator = _coordinator(uow, rooms, notify_sender_on_miss=True)

    await coordinator.submit(
        SESSION, client_principal, RealtimeSubmission(appointment_id=appt.id, content="bye"),
    )
    coordinator.release_session(SESSION)

    assert await coordinator.wait_pending() == [DeliveryOutcome.MISSED]
    assert rooms.direct == []


@pytest.mark.asyncio
async def test_race_timeline_write_lands_within_retry_window(client_principal):
    """Submit at t0, write visible at t0+2ms/t0+5ms, retry fires after the delay."""
    uow, appt = make_seeded_uow()
    rooms = FakeRooms()
    coordinator = _coordinator(uow, rooms, retry_delay=0.05)

    outcome = await coordinator.submit(
        SESSION, client_principal, RealtimeSubmission(appointment_id=appt.id, content="Hello"),
    )
    await asyncio.sleep(0.002)
    stored = await _write(client_principal, uow, appt.id, "Hello")
    await asyncio.sleep(0.003)
    assert rooms.broadcasts == []

    assert outcome is DeliveryOutcome.RETRY_SCHEDULED
    assert await coordinator.wait_pending() == [DeliveryOutcome.DELIVERED]
    assert len(rooms.broadcasts) == 1
    assert rooms.broadcasts[0][2] == stored.to_payload()


@pytest.mark.asyncio
async def test_concurrent_duplicate_content_broadcasts_stored_rows(client_principal):
    uow, appt = make_seeded_uow()
    rooms = FakeRooms()
    coordinator = _coordinator(uow, rooms)
    first = await _write(client_principal, uow, appt.id, "ok")
    second = await _write(client_principal, uow, appt.id, "ok")
    submission = RealtimeSubmission(appointment_id=appt.id, content="ok")

    await asyncio.gather(
        coordinator.submit(SESSION, client_principal, submission),
        coordinator.submit("session-2", client_principal, submission),
    )

    stored_ids = {str(first.message.id), str(second.message.id)}
    assert rooms.broadcasts
    assert set(rooms.broadcast_ids()) <= stored_ids
    assert len(rooms.broadcast_ids()) == len(set(rooms.broadcast_ids()))


@pytest.mark.asyncio
async def test_ledger_is_bounded(client_principal):
    uow, appt = make_seeded_uow()
    rooms = FakeRooms()
    coordinator = _coordinator(uow, rooms, ledger_size=1)
    a, b = uuid.uuid4(), uuid.uuid4()

    await coordinator.deliver(appt.id, a, {"id": str(a)})
    await coordinator.deliver(appt.id, b, {"id": str(b)})
    # a was evicted when b was recorded
    outcome = await coordinator.deliver(appt.id, a, {"id": str(a)})

    assert outcome is DeliveryOutcome.DELIVERED
    assert rooms.broadcast_ids() == [str(a), str(b), str(a)]
