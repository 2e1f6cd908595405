from __future__ import annotations

import asyncio
import logging
from typing import Any
from uuid import UUID

import jwt
from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect

from counsel_service.api.deps import get_verifier
from counsel_service.application.dto.message import RealtimeSubmission
from counsel_service.application.dto.principal import Principal
from counsel_service.application.exceptions import AppError
from counsel_service.application.policies.permissions import assert_appointment_access
from counsel_service.application.uow import UoWFactory
from counsel_service.config import settings
from counsel_service.domain.value_objects.enums import MessageType
from counsel_service.infrastructure.ws.manager import RoomRegistry, Session
from counsel_service.infrastructure.ws.protocol import WsInbound, WsOutbound, error_frame
from counsel_service.services import message_service
from counsel_service.services.delivery_service import MessageDeliveryCoordinator

logger = logging.getLogger(__name__)
router = APIRouter(tags=["websocket"])


async def _authenticate(token: str) -> Principal | None:
    try:
        return await get_verifier().verify(token)
    except jwt.PyJWTError as exc:
        logger.debug("WS auth failed: %s", exc)
        return None


@router.websocket("/ws/chat")
async def ws_chat(
    websocket: WebSocket,
    token: str = Query(...),
) -> None:
    principal = await _authenticate(token)
    if principal is None:
        await websocket.close(code=4001, reason="Authentication failed")
        return

    rooms: RoomRegistry = websocket.app.state.rooms
    delivery: MessageDeliveryCoordinator = websocket.app.state.delivery
    session = await rooms.connect(websocket, principal)

    heartbeat_task = asyncio.create_task(
        _heartbeat(websocket), name=f"ws-heartbeat-{session.id}",
    )
    try:
        await _read_loop(session, websocket.app.state)
    except WebSocketDisconnect:
        pass
    except Exception:
        logger.exception("WS error for %s", principal.principal_key)
    finally:
        heartbeat_task.cancel()
        delivery.release_session(session.id)
        rooms.disconnect(session.id)


async def _heartbeat(ws: WebSocket) -> None:
    interval = settings.WS_HEARTBEAT_SECONDS
    try:
        while True:
            await asyncio.sleep(interval)
            await _send(ws, WsOutbound(type="pong"))
    except asyncio.CancelledError:
        pass
    except Exception as exc:
        logger.debug("Heartbeat stopped: %s", exc)


async def _send(ws: WebSocket, frame: WsOutbound) -> None:
    await ws.send_text(frame.model_dump_json())


async def _read_loop(session: Session, state: Any) -> None:
    ws = session.websocket
    while True:
        raw = await ws.receive_text()
        try:
            msg = WsInbound.model_validate_json(raw)
        except Exception:
            await _send(ws, error_frame("invalid_payload"))
            continue

        if msg.type == "ping":
            await _send(ws, WsOutbound(type="pong"))

        elif msg.type == "join":
            await _handle_join(session, msg.data, state.rooms, state.uow_factory)

        elif msg.type == "leave":
            await _handle_leave(session, msg.data, state.rooms)

        elif msg.type == "message.send":
            await _handle_send(session, msg.data, state.delivery)

        elif msg.type == "mark_read":
            await _handle_mark_read(session, msg.data, state.uow_factory)

        elif msg.type == "signal":
            await _handle_signal(session, msg.data, state.rooms)

        else:
            await _send(ws, error_frame("unknown_type", type=msg.type))


def _appointment_id(data: dict[str, Any]) -> UUID:
    return UUID(str(data["appointment_id"]))


async def _handle_join(
    session: Session,
    data: dict[str, Any],
    rooms: RoomRegistry,
    uow_factory: UoWFactory,
) -> None:
    try:
        appointment_id = _appointment_id(data)
    except (KeyError, ValueError) as exc:
        await _send(session.websocket, error_frame("invalid_data", str(exc)))
        return

    try:
        async with uow_factory() as uow:
            appointment = await uow.appointments.get_by_id(appointment_id)
            assert_appointment_access(session.principal, appointment)
    except AppError as exc:
        await _send(session.websocket, error_frame(exc.code, exc.detail))
        return

    rooms.join(appointment_id, session.id)
    await _send(
        session.websocket,
        WsOutbound(type="session.joined", data={"appointment_id": str(appointment_id)}),
    )


async def _handle_leave(session: Session, data: dict[str, Any], rooms: RoomRegistry) -> None:
    try:
        appointment_id = _appointment_id(data)
    except (KeyError, ValueError) as exc:
        await _send(session.websocket, error_frame("invalid_data", str(exc)))
        return
    rooms.leave(appointment_id, session.id)
    await _send(
        session.websocket,
        WsOutbound(type="session.left", data={"appointment_id": str(appointment_id)}),
    )


async def _handle_send(
    session: Session,
    data: dict[str, Any],
    delivery: MessageDeliveryCoordinator,
) -> None:
    try:
        content = str(data["content"]).strip()
        if not content:
            raise ValueError("content must not be empty")
        client_msg_id = data.get("client_msg_id")
        submission = RealtimeSubmission(
            appointment_id=_appointment_id(data),
            content=content,
            message_type=MessageType(data.get("message_type", "text")),
            client_msg_id=UUID(str(client_msg_id)) if client_msg_id else None,
        )
    except (KeyError, ValueError) as exc:
        await _send(session.websocket, error_frame("invalid_data", str(exc)))
        return

    try:
        await delivery.submit(session.id, session.principal, submission)
    except Exception:
        logger.exception("Live submission failed for appointment %s", submission.appointment_id)
        await _send(session.websocket, error_frame("send_failed", "Failed to send message"))


async def _handle_mark_read(
    session: Session,
    data: dict[str, Any],
    uow_factory: UoWFactory,
) -> None:
    try:
        appointment_id = _appointment_id(data)
    except (KeyError, ValueError) as exc:
        await _send(session.websocket, error_frame("invalid_data", str(exc)))
        return

    try:
        async with uow_factory() as uow:
            modified = await message_service.mark_read(session.principal, appointment_id, uow)
    except AppError as exc:
        await _send(session.websocket, error_frame(exc.code, exc.detail))
        return
    except Exception:
        logger.exception("mark_read failed")
        await _send(session.websocket, error_frame("mark_read_failed"))
        return

    await _send(
        session.websocket,
        WsOutbound(
            type="messages.read",
            data={"appointment_id": str(appointment_id), "modified_count": modified},
        ),
    )


async def _handle_signal(session: Session, data: dict[str, Any], rooms: RoomRegistry) -> None:
    """Relay video-call signalling to the other sessions of a joined room."""
    try:
        appointment_id = _appointment_id(data)
    except (KeyError, ValueError) as exc:
        await _send(session.websocket, error_frame("invalid_data", str(exc)))
        return

    if not rooms.is_member(appointment_id, session.id):
        await _send(session.websocket, error_frame("not_joined", "Join the appointment room first"))
        return

    await rooms.broadcast(
        appointment_id,
        "signal",
        {**data, "from_user_id": session.principal.user_id},
        exclude=session.id,
    )
