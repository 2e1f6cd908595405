from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone

import pytest

from counsel_service.application.dto.message import RealtimeSubmission, SendMessageDTO
from counsel_service.application.dto.pagination import MessageCursor
from counsel_service.application.exceptions import (
    InvalidStateError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from counsel_service.domain.value_objects.enums import AppointmentStatus
from counsel_service.services import message_service
from tests.conftest import (
    CLIENT_ID,
    COUNSELOR_ID,
    make_appointment,
    make_message,
    make_seeded_uow,
)


@pytest.mark.asyncio
async def test_send_message_stores_trimmed_content(client_principal):
    uow, appt = make_seeded_uow()

    view, created = await message_service.send_message(
        client_principal, SendMessageDTO(appointment_id=appt.id, content="  hello  "), uow,
    )

    assert created is True
    assert view.message.content == "hello"
    assert view.message.sender_id == CLIENT_ID
    assert view.message.receiver_id == COUNSELOR_ID
    assert view.message.is_read is False
    assert view.sender is not None and view.sender.first_name == "Casey"
    assert view.receiver is not None and view.receiver.first_name == "Sam"
    assert uow._committed is True


@pytest.mark.asyncio
async def test_counselor_message_goes_to_client(counselor_principal):
    uow, appt = make_seeded_uow()

    view, _ = await message_service.send_message(
        counselor_principal, SendMessageDTO(appointment_id=appt.id, content="hi"), uow,
    )

    assert view.message.sender_id == COUNSELOR_ID
    assert view.message.receiver_id == CLIENT_ID


@pytest.mark.asyncio
async def test_send_message_writes_outbox(client_principal):
    uow, appt = make_seeded_uow()

    view, _ = await message_service.send_message(
        client_principal, SendMessageDTO(appointment_id=appt.id, content="test"), uow,
    )

    assert len(uow.outbox._records) == 1
    record = uow.outbox._records[0]
    assert record["event_type"] == message_service.MESSAGE_CREATED_EVENT
    assert record["payload"]["message_id"] == str(view.message.id)
    assert record["payload"]["appointment_id"] == str(appt.id)
    assert record["payload"]["message"]["content"] == "test"


@pytest.mark.asyncio
async def test_send_message_idempotent_with_client_msg_id(client_principal):
    uow, appt = make_seeded_uow()
    dto = SendMessageDTO(appointment_id=appt.id, content="hello", client_msg_id=uuid.uuid4())

    first, created1 = await message_service.send_message(client_principal, dto, uow)
    uow._committed = False
    second, created2 = await message_service.send_message(client_principal, dto, uow)

    assert created1 is True
    assert created2 is False
    assert first.message.id == second.message.id
    assert len(uow.messages._messages) == 1
    assert len(uow.outbox._records) == 1
    assert uow._committed is False


@pytest.mark.asyncio
async def test_duplicate_content_without_client_msg_id_creates_two_rows(client_principal):
    uow, appt = make_seeded_uow()
    dto = SendMessageDTO(appointment_id=appt.id, content="ok")

    await message_service.send_message(client_principal, dto, uow)
    await message_service.send_message(client_principal, dto, uow)

    assert len(uow.messages._messages) == 2


@pytest.mark.asyncio
@pytest.mark.parametrize("content", ["", "   ", "\n\t"])
async def test_send_message_rejects_blank_content(client_principal, content):
    uow, appt = make_seeded_uow()

    with pytest.raises(ValidationError) as exc_info:
        await message_service.send_message(
            client_principal, SendMessageDTO(appointment_id=appt.id, content=content), uow,
        )

    assert "content" in exc_info.value.errors
    assert uow.messages._messages == []


@pytest.mark.asyncio
async def test_send_message_unknown_appointment(client_principal):
    uow, _ = make_seeded_uow()

    with pytest.raises(NotFoundError):
        await message_service.send_message(
            client_principal, SendMessageDTO(appointment_id=uuid.uuid4(), content="hi"), uow,
        )


@pytest.mark.asyncio
async def test_send_message_forbidden_for_non_participant(client_principal):
    uow, appt = make_seeded_uow(make_appointment(client_id=99))

    with pytest.raises(UnauthorizedError):
        await message_service.send_message(
            client_principal, SendMessageDTO(appointment_id=appt.id, content="hi"), uow,
        )
    assert uow.messages._messages == []


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED])
async def test_send_message_rejected_for_closed_appointment(client_principal, status):
    uow, appt = make_seeded_uow(make_appointment(status=status))

    with pytest.raises(InvalidStateError):
        await message_service.send_message(
            client_principal, SendMessageDTO(appointment_id=appt.id, content="hi"), uow,
        )
    assert uow.messages._messages == []


@pytest.mark.asyncio
async def test_list_messages_oldest_first(client_principal):
    uow, appt = make_seeded_uow()
    base = datetime.now(timezone.utc)
    uow.messages.add(make_message(appointment_id=appt.id, content="second", created_at=base + timedelta(seconds=1)))
    uow.messages.add(make_message(appointment_id=appt.id, content="first", created_at=base))

    views = await message_service.list_messages(client_principal, appt.id, None, 50, uow)

    assert [v.message.content for v in views] == ["first", "second"]


@pytest.mark.asyncio
async def test_list_messages_allowed_after_completion(counselor_principal):
    uow, appt = make_seeded_uow(make_appointment(status=AppointmentStatus.COMPLETED))
    uow.messages.add(make_message(appointment_id=appt.id))

    views = await message_service.list_messages(counselor_principal, appt.id, None, 50, uow)

    assert len(views) == 1


@pytest.mark.asyncio
async def test_mark_read_only_touches_messages_addressed_to_caller(counselor_principal):
    uow, appt = make_seeded_uow()
    uow.messages.add(make_message(appointment_id=appt.id))
    uow.messages.add(make_message(appointment_id=appt.id))
    uow.messages.add(make_message(
        appointment_id=appt.id, sender_id=COUNSELOR_ID, receiver_id=CLIENT_ID,
    ))

    modified = await message_service.mark_read(counselor_principal, appt.id, uow)

    assert modified == 2
    assert await uow.messages.count_unread(CLIENT_ID) == 1
    assert await uow.messages.count_unread(COUNSELOR_ID) == 0
    assert uow._committed is True


@pytest.mark.asyncio
async def test_unread_count(client_principal):
    uow, appt = make_seeded_uow()
    uow.messages.add(make_message(appointment_id=appt.id, sender_id=COUNSELOR_ID, receiver_id=CLIENT_ID))

    assert await message_service.unread_count(client_principal, uow) == 1


@pytest.mark.asyncio
async def test_find_submitted_prefers_latest_matching_content():
    uow, appt = make_seeded_uow()
    base = datetime.now(timezone.utc)
    uow.messages.add(make_message(appointment_id=appt.id, content="same", created_at=base))
    latest = uow.messages.add(make_message(appointment_id=appt.id, content="same", created_at=base))

    view = await message_service.find_submitted(
        RealtimeSubmission(appointment_id=appt.id, content=" same "), CLIENT_ID, uow,
    )

    assert view is not None
    assert view.message.id == latest.id


@pytest.mark.asyncio
async def test_find_submitted_by_client_msg_id_is_scoped_to_sender():
    uow, appt = make_seeded_uow()
    cmid = uuid.uuid4()
    stored = uow.messages.add(make_message(appointment_id=appt.id, client_msg_id=cmid, content="a"))
    uow.messages.add(make_message(appointment_id=appt.id, content="b"))

    submission = RealtimeSubmission(appointment_id=appt.id, content="b", client_msg_id=cmid)

    found = await message_service.find_submitted(submission, CLIENT_ID, uow)
    other_sender = await message_service.find_submitted(submission, COUNSELOR_ID, uow)

    assert found is not None and found.message.id == stored.id
    assert other_sender is None


@pytest.mark.asyncio
async def test_find_submitted_returns_none_when_missing():
    uow, appt = make_seeded_uow()

    view = await message_service.find_submitted(
        RealtimeSubmission(appointment_id=appt.id, content="nothing"), CLIENT_ID, uow,
    )

    assert view is None


@pytest.mark.asyncio
async def test_list_messages_pages_with_cursor(client_principal):
    uow, appt = make_seeded_uow()
    base = datetime.now(timezone.utc)
    for i in range(3):
        uow.messages.add(make_message(appointment_id=appt.id, content=f"m{i}", created_at=base))

    first = await message_service.list_messages(client_principal, appt.id, None, 2, uow)
    cursor = MessageCursor.after(first[-1].message).encode()
    rest = await message_service.list_messages(client_principal, appt.id, cursor, 2, uow)

    assert [v.message.content for v in first] == ["m0", "m1"]
    assert [v.message.content for v in rest] == ["m2"]


@pytest.mark.asyncio
async def test_list_messages_rejects_malformed_cursor(client_principal):
    uow, appt = make_seeded_uow()

    with pytest.raises(ValidationError) as exc_info:
        await message_service.list_messages(client_principal, appt.id, "%%%", 10, uow)
    assert "cursor" in exc_info.value.errors
