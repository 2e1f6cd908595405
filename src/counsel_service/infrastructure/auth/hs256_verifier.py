from __future__ import annotations

import jwt

from counsel_service.application.dto.principal import Principal
from counsel_service.infrastructure.auth.claims import principal_from_claims


class HS256Verifier:
    """Shared-secret verification for tokens issued by the auth endpoints."""

    def __init__(self, secret: str, algorithm: str = "HS256", *, leeway: int = 0) -> None:
        if not secret:
            raise ValueError("JWT secret must not be empty")
        self._secret = secret
        self._algorithms = [algorithm]
        self._leeway = leeway

    async def verify(self, token: str) -> Principal:
        claims = jwt.decode(
            token,
            self._secret,
            algorithms=self._algorithms,
            leeway=self._leeway,
            options={"require": ["sub"]},
        )
        return principal_from_claims(claims)
