from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel


class ParticipantSummaryResponse(BaseModel):
    id: int
    first_name: str
    last_name: str
    avatar: str

    model_config = {"from_attributes": True}


class CounselorResponse(BaseModel):
    id: int
    first_name: str
    last_name: str
    avatar: str
    specialization: str | None
    experience: str | None
    bio: str | None
    hourly_rate: float | None
    rating: float
    total_sessions: int
    availability: list[dict[str, Any]]

    model_config = {"from_attributes": True}


class UserProfileResponse(BaseModel):
    """The caller's own account; counselor fields are null for clients."""

    id: int
    first_name: str
    last_name: str
    email: str
    phone: str
    user_type: str
    avatar: str
    created_at: datetime
    license_number: str | None
    specialization: str | None
    experience: str | None
    bio: str | None
    hourly_rate: float | None
    availability: list[dict[str, Any]]
    rating: float
    total_sessions: int

    model_config = {"from_attributes": True}
