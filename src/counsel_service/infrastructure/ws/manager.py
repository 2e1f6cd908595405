"""In-process registry of live WebSocket sessions and appointment rooms."""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any
from uuid import UUID

from fastapi import WebSocket

from counsel_service.application.dto.principal import Principal
from counsel_service.infrastructure.ws.protocol import WsOutbound

logger = logging.getLogger(__name__)


@dataclass(eq=False, slots=True)
class Session:
    """One live connection. Exists only while the socket is open."""

    websocket: WebSocket
    principal: Principal
    id: str = field(default_factory=lambda: uuid.uuid4().hex)


class RoomRegistry:
    """Maps appointment ids to the sessions joined to their room.

    State is process-local and rebuilt from scratch on restart; clients rejoin
    after reconnecting. Implements ``application.ports.realtime.RoomBroadcaster``.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}
        self._rooms: dict[UUID, set[str]] = {}

    async def connect(self, ws: WebSocket, principal: Principal) -> Session:
        await ws.accept()
        session = Session(websocket=ws, principal=principal)
        self._sessions[session.id] = session
        logger.debug(
            "WS connected: %s session=%s (total=%d)",
            principal.principal_key, session.id, len(self._sessions),
        )
        return session

    def disconnect(self, session_id: str) -> None:
        session = self._sessions.pop(session_id, None)
        for room_id in self.rooms_of(session_id):
            self._discard(room_id, session_id)
        if session is not None:
            logger.debug("WS disconnected: %s session=%s", session.principal.principal_key, session_id)

    def join(self, appointment_id: UUID, session_id: str) -> None:
        if session_id not in self._sessions:
            raise KeyError(session_id)
        self._rooms.setdefault(appointment_id, set()).add(session_id)
        logger.debug("Session %s joined room %s", session_id, appointment_id)

    def leave(self, appointment_id: UUID, session_id: str) -> None:
        self._discard(appointment_id, session_id)

    def members(self, appointment_id: UUID) -> frozenset[str]:
        return frozenset(self._rooms.get(appointment_id, ()))

    def rooms_of(self, session_id: str) -> set[UUID]:
        return {rid for rid, members in self._rooms.items() if session_id in members}

    def is_member(self, appointment_id: UUID, session_id: str) -> bool:
        return session_id in self.members(appointment_id)

    def get(self, session_id: str) -> Session | None:
        return self._sessions.get(session_id)

    def session_count(self) -> int:
        return len(self._sessions)

    def _discard(self, appointment_id: UUID, session_id: str) -> None:
        members = self._rooms.get(appointment_id)
        if members is None:
            return
        members.discard(session_id)
        if not members:
            del self._rooms[appointment_id]

    async def broadcast(
        self,
        appointment_id: UUID,
        event_type: str,
        data: dict[str, Any],
        *,
        exclude: str | None = None,
    ) -> int:
        """Send a frame to every session in the room. A room with no members is a no-op."""
        raw = WsOutbound(type=event_type, data=data).model_dump_json()
        sent = 0
        dead: list[str] = []
        for session_id in self.members(appointment_id):
            if session_id == exclude:
                continue
            session = self.get(session_id)
            if session is None:
                dead.append(session_id)
                continue
            try:
                await session.websocket.send_text(raw)
                sent += 1
            except Exception:
                logger.debug("Dropping session %s after failed send", session_id, exc_info=True)
                dead.append(session_id)
        for session_id in dead:
            self.disconnect(session_id)
        return sent

    async def send_to_session(
        self,
        session_id: str,
        event_type: str,
        data: dict[str, Any],
    ) -> None:
        """Send a frame to a single session."""
        session = self.get(session_id)
        if session is None:
            return
        raw = WsOutbound(type=event_type, data=data).model_dump_json()
        try:
            await session.websocket.send_text(raw)
        except Exception:
            logger.debug("Dropping session %s after failed send", session_id, exc_info=True)
            self.disconnect(session_id)
