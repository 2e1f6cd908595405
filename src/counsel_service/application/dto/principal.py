from __future__ import annotations

from dataclasses import dataclass

from counsel_service.domain.value_objects.enums import UserType


@dataclass(frozen=True, slots=True)
class Principal:
    """Authenticated caller identity extracted from JWT."""

    user_id: int
    user_type: UserType

    @property
    def is_client(self) -> bool:
        return self.user_type == UserType.CLIENT

    @property
    def is_counselor(self) -> bool:
        return self.user_type == UserType.COUNSELOR

    @property
    def principal_key(self) -> str:
        return f"{self.user_type}:{self.user_id}"
