from __future__ import annotations

from typing import Any, Protocol
from uuid import UUID


class RoomBroadcaster(Protocol):
    """Live transport used by the delivery coordinator."""

    async def broadcast(
        self,
        appointment_id: UUID,
        event_type: str,
        data: dict[str, Any],
        *,
        exclude: str | None = None,
    ) -> int:
        """Send to every session in the room. Returns number of sessions reached."""
        ...

    async def send_to_session(
        self,
        session_id: str,
        event_type: str,
        data: dict[str, Any],
    ) -> None: ...
