from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol

from counsel_service.domain.entities.user import User


class UserReader(Protocol):
    async def get_by_id(self, user_id: int) -> User | None: ...

    async def get_many(self, user_ids: Iterable[int]) -> dict[int, User]:
        """Batch lookup keyed by id. Unknown ids are absent from the result."""
        ...

    async def list_counselors(self) -> list[User]: ...


class UserWriter(Protocol):
    async def create(self, user: User) -> User: ...
