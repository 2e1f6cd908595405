from __future__ import annotations

from typing import Any

import jwt

from counsel_service.application.dto.principal import Principal
from counsel_service.domain.value_objects.enums import UserType


def principal_from_claims(payload: dict[str, Any]) -> Principal:
    """Build a Principal from decoded JWT claims.

    ``sub`` carries the user id; the role is read from ``user_type`` and falls
    back to the camel-cased ``userType`` issued by older frontends.
    """
    raw_type = payload.get("user_type", payload.get("userType"))
    try:
        user_type = UserType(raw_type)
    except ValueError as exc:
        raise jwt.InvalidTokenError("Invalid user type") from exc
    try:
        user_id = int(payload["sub"])
    except (KeyError, TypeError, ValueError) as exc:
        raise jwt.InvalidTokenError("Invalid subject") from exc
    return Principal(user_id=user_id, user_type=user_type)
