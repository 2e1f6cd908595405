from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any
from uuid import UUID


@dataclass(frozen=True, slots=True)
class Appointment:
    id: UUID
    client_id: int
    counselor_id: int
    session_date: date
    time: str
    session_type: str
    status: str
    amount: float
    payment_status: str
    created_at: datetime
    updated_at: datetime
    duration: int = 50
    notes: str = ""
    session_notes: str = ""
    meeting_link: str = ""
    meeting_platform: str | None = None
    meeting_created_at: datetime | None = None
    session_start_time: datetime | None = None
    session_end_time: datetime | None = None
    notifications: list[dict[str, Any]] = field(default_factory=list)

    def other_participant(self, user_id: int) -> int:
        """Return the id of the participant that is not ``user_id``."""
        return self.counselor_id if user_id == self.client_id else self.client_id
