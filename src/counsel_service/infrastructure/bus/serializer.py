"""Wire format of the fan-out channel.

``{"event": <name>, "published_at": <iso>, "data": {...}}`` as compact JSON.
"""
from __future__ import annotations

import json
from datetime import date, datetime, timezone
from typing import Any
from uuid import UUID


def _default(value: object) -> Any:
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    raise TypeError(f"{type(value).__name__} is not JSON serializable")


def serialize_event(event_type: str, data: dict[str, Any]) -> str:
    envelope = {
        "event": event_type,
        "published_at": datetime.now(timezone.utc).isoformat(),
        "data": data,
    }
    return json.dumps(envelope, default=_default, separators=(",", ":"))


def deserialize_event(raw: str | bytes) -> tuple[str, dict[str, Any]]:
    envelope = json.loads(raw)
    return envelope["event"], envelope.get("data") or {}
