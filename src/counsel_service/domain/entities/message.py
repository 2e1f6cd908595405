from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID


@dataclass(frozen=True, slots=True)
class Message:
    id: UUID
    appointment_id: UUID
    sender_id: int
    receiver_id: int
    content: str
    message_type: str
    is_read: bool
    client_msg_id: UUID | None
    created_at: datetime
    attachments: list[dict[str, Any]] = field(default_factory=list)
    # insertion order, assigned by the store
    seq: int = 0
