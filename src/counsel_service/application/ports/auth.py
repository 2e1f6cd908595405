from __future__ import annotations

from typing import Protocol

from counsel_service.application.dto.principal import Principal


class TokenVerifier(Protocol):
    """Turns a bearer token into the caller's identity.

    Implementations raise ``jwt.PyJWTError`` for expired, forged or malformed tokens.
    """

    async def verify(self, token: str) -> Principal: ...
