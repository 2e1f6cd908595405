from __future__ import annotations

import asyncio
from collections.abc import Sequence

import jwt

from counsel_service.application.dto.principal import Principal
from counsel_service.infrastructure.auth.claims import principal_from_claims


class JWKSVerifier:
    """Asymmetric verification against keys published by an identity provider."""

    def __init__(self, jwks_url: str, algorithms: Sequence[str] = ("RS256", "ES256")) -> None:
        self._keys = jwt.PyJWKClient(jwks_url, cache_keys=True)
        self._algorithms = list(algorithms)

    async def verify(self, token: str) -> Principal:
        # PyJWKClient fetches over blocking urllib
        key = await asyncio.to_thread(self._keys.get_signing_key_from_jwt, token)
        claims = jwt.decode(
            token,
            key.key,
            algorithms=self._algorithms,
            options={"require": ["sub"]},
        )
        return principal_from_claims(claims)
