"""Error types translated into the JSON error envelope by ``basis_hub.http``."""
from __future__ import annotations

from typing import Any

MISSING_REQUIRED_FIELDS = "MISSING_REQUIRED_FIELDS"
MISSING_EXERCISE_ID = "MISSING_EXERCISE_ID"
MISSING_LESSON_ID = "MISSING_LESSON_ID"
VALIDATION_ERROR = "VALIDATION_ERROR"
INVALID_ACTION = "INVALID_ACTION"
INVALID_EXERCISE_CODE = "INVALID_EXERCISE_CODE"
EXERCISE_NOT_FOUND = "EXERCISE_NOT_FOUND"
LESSON_NOT_FOUND = "LESSON_NOT_FOUND"
METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"
DATABASE_ERROR = "DATABASE_ERROR"
INTERNAL_ERROR = "INTERNAL_ERROR"


class ApiError(Exception):
    """An error with an HTTP status and a machine-readable code."""

    status: int = 500
    code: str = INTERNAL_ERROR

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        status: int | None = None,
        details: Any = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if status is not None:
            self.status = status
        self.details = details


class BadRequest(ApiError):
    status = 400
    code = VALIDATION_ERROR


class NotFound(ApiError):
    status = 404


class MethodNotAllowed(ApiError):
    status = 405
    code = METHOD_NOT_ALLOWED


class DatabaseError(ApiError):
    status = 500
    code = DATABASE_ERROR


class InternalError(ApiError):
    status = 500
    code = INTERNAL_ERROR
