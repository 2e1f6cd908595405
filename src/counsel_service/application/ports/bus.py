from __future__ import annotations

from typing import Any, Protocol


class EventPublisher(Protocol):
    """Fan-out of committed events to every API process.

    ``payload`` carries the event name under ``event_type`` next to its fields.
    """

    async def publish(self, channel: str, payload: dict[str, Any]) -> None: ...
