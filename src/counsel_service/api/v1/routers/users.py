from __future__ import annotations

from fastapi import APIRouter

from counsel_service.api.deps import CurrentPrincipal, UoWDep
from counsel_service.api.v1.schemas.user import UserProfileResponse
from counsel_service.services import user_service

router = APIRouter(prefix="/api/v1/users", tags=["users"])


@router.get("/me", response_model=UserProfileResponse)
async def get_me(principal: CurrentPrincipal, uow: UoWDep) -> UserProfileResponse:
    user = await user_service.get_profile(principal, uow)
    return UserProfileResponse.model_validate(user, from_attributes=True)
