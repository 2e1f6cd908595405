from __future__ import annotations

from counsel_service.application.dto.principal import Principal
from counsel_service.application.exceptions import NotFoundError
from counsel_service.application.uow import UnitOfWork
from counsel_service.domain.entities.user import User


async def get_profile(principal: Principal, uow: UnitOfWork) -> User:
    user = await uow.users.get_by_id(principal.user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


async def list_counselors(uow: UnitOfWork) -> list[User]:
    """Public directory used by the booking form."""
    return await uow.users.list_counselors()
