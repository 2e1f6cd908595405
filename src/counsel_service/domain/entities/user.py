from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(frozen=True, slots=True)
class User:
    id: int
    first_name: str
    last_name: str
    email: str
    phone: str
    user_type: str
    avatar: str
    created_at: datetime
    license_number: str | None = None
    specialization: str | None = None
    experience: str | None = None
    bio: str | None = None
    hourly_rate: float | None = None
    availability: list[dict[str, Any]] = field(default_factory=list)
    rating: float = 0.0
    total_sessions: int = 0
    is_active: bool = True

    @property
    def is_counselor(self) -> bool:
        return self.user_type == "counselor"
