from __future__ import annotations


class AppError(Exception):
    """Base application error."""

    code = "error"

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__(detail)


class NotFoundError(AppError):
    code = "not_found"


class UnauthorizedError(AppError):
    """Caller is not a participant, or acts under the wrong role."""

    code = "unauthorized"


class InvalidStateError(AppError):
    """Target exists but its status forbids the operation."""

    code = "invalid_state"


class ValidationError(AppError):
    code = "invalid_data"

    def __init__(self, detail: str = "", errors: dict[str, str] | None = None) -> None:
        super().__init__(detail)
        self.errors = errors or {}
