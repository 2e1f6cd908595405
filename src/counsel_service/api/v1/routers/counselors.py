from __future__ import annotations

from fastapi import APIRouter

from counsel_service.api.deps import UoWDep
from counsel_service.api.v1.schemas.user import CounselorResponse
from counsel_service.services import user_service

router = APIRouter(prefix="/api/v1/counselors", tags=["counselors"])


@router.get("", response_model=list[CounselorResponse])
async def list_counselors(uow: UoWDep) -> list[CounselorResponse]:
    counselors = await user_service.list_counselors(uow)
    return [CounselorResponse.model_validate(c, from_attributes=True) for c in counselors]
