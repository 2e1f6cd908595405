from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass
from datetime import datetime

from counsel_service.application.exceptions import ValidationError
from counsel_service.domain.entities.message import Message


@dataclass(frozen=True, slots=True)
class MessageCursor:
    """Position in a thread; the next page starts strictly after it.

    Opaque to clients: urlsafe base64 of ``<created_at iso>|<seq>`` without padding.
    """

    created_at: datetime
    seq: int

    @classmethod
    def after(cls, message: Message) -> MessageCursor:
        return cls(created_at=message.created_at, seq=message.seq)

    def encode(self) -> str:
        raw = f"{self.created_at.isoformat()}|{self.seq}".encode()
        return base64.urlsafe_b64encode(raw).decode().rstrip("=")

    @classmethod
    def decode(cls, token: str) -> MessageCursor:
        padded = token + "=" * (-len(token) % 4)
        try:
            created_at, _, seq = base64.urlsafe_b64decode(padded).decode().partition("|")
            return cls(created_at=datetime.fromisoformat(created_at), seq=int(seq))
        except (binascii.Error, UnicodeDecodeError, ValueError) as exc:
            raise ValidationError("Invalid cursor", errors={"cursor": "Malformed cursor"}) from exc
