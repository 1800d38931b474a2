from __future__ import annotations

from typing import Any


class PosError(Exception):
    """Base class for errors surfaced to callers of the use cases."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.details = details or {}


class ValidationError(PosError):
    pass


class NotFoundError(PosError):
    pass


class ConflictError(PosError):
    pass


class UnavailableError(PosError):
    pass


class AlreadyPaidError(PosError):
    pass


class InvalidTransitionError(PosError):
    pass


class AuthError(PosError):
    pass


class ForbiddenError(AuthError):
    pass
