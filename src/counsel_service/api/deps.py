"""FastAPI dependencies: unit of work and the authenticated caller."""
from __future__ import annotations

import logging
from functools import lru_cache
from typing import Annotated, AsyncIterator

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from counsel_service.application.dto.principal import Principal
from counsel_service.application.ports.auth import TokenVerifier
from counsel_service.application.uow import UnitOfWork
from counsel_service.config import settings
from counsel_service.infrastructure.auth.hs256_verifier import HS256Verifier
from counsel_service.infrastructure.auth.jwks_verifier import JWKSVerifier
from counsel_service.infrastructure.db.uow import uow_scope

logger = logging.getLogger(__name__)

_bearer = HTTPBearer(auto_error=False)


async def get_uow() -> AsyncIterator[UnitOfWork]:
    async with uow_scope() as uow:
        yield uow


UoWDep = Annotated[UnitOfWork, Depends(get_uow)]


@lru_cache(maxsize=1)
def get_verifier() -> TokenVerifier:
    """Token verifier selected by ``JWT_VERIFY_MODE``; built once per process."""
    if settings.JWT_VERIFY_MODE == "jwks":
        if not settings.JWKS_URL:
            raise RuntimeError("JWKS_URL must be set when JWT_VERIFY_MODE=jwks")
        return JWKSVerifier(settings.JWKS_URL)
    return HS256Verifier(settings.JWT_SECRET, settings.JWT_ALGORITHM)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_principal(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_bearer)],
) -> Principal:
    if credentials is None:
        raise _unauthorized("No token, authorization denied")
    try:
        return await get_verifier().verify(credentials.credentials)
    except jwt.PyJWTError as exc:
        logger.debug("Rejected bearer token: %s", exc)
        raise _unauthorized("Token is not valid") from exc


CurrentPrincipal = Annotated[Principal, Depends(get_current_principal)]
