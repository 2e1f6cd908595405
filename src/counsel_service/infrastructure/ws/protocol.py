"""JSON envelopes exchanged over ``/ws/chat``: ``{"type": ..., "data": {...}}``."""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class _Frame(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: str = Field(min_length=1)
    data: dict[str, Any] = Field(default_factory=dict)


class WsInbound(_Frame):
    """join | leave | message.send | mark_read | signal | ping"""


class WsOutbound(_Frame):
    """session.joined | session.left | message.created | messages.read | signal | error | pong"""


def error_frame(code: str, detail: str = "", **extra: Any) -> WsOutbound:
    return WsOutbound(type="error", data={"code": code, "detail": detail, **extra})
