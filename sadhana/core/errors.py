"""
Custom exception hierarchy for the Sadhana scoring service.

Rule: every HTTP error has a machine-readable `code` string so clients
can branch on it without parsing English messages.

The computation core raises only InvalidInputError and AmbiguousDateError;
the rest belong to the storage/intake layer.
"""
from __future__ import annotations

from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status

from sadhana.core.logging import get_logger

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Exception classes
# ---------------------------------------------------------------------------

class SadhanaException(Exception):
    """Base class for all application-level errors."""
    http_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class InvalidInputError(SadhanaException):
    """Negative, non-integer or out-of-range input handed to a pure function."""
    http_status = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "INVALID_INPUT"

    def __init__(self, field: str, value: Any, reason: str = "must be a non-negative integer"):
        super().__init__(
            message=f"Invalid value for {field!r}: {value!r} {reason}.",
            details={"field": field, "value": repr(value), "reason": reason},
        )


class AmbiguousDateError(SadhanaException):
    http_status = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "AMBIGUOUS_DATE"

    def __init__(self, value: Any):
        super().__init__(
            message=f"Cannot resolve {value!r} to a calendar date.",
            details={"value": repr(value)},
        )


class EntityNotFoundError(SadhanaException):
    http_status = status.HTTP_404_NOT_FOUND
    code = "ENTITY_NOT_FOUND"

    def __init__(self, entity_id: int):
        super().__init__(
            message=f"Entity {entity_id} does not exist.",
            details={"entity_id": entity_id},
        )


class EntityNameTakenError(SadhanaException):
    http_status = status.HTTP_409_CONFLICT
    code = "ENTITY_NAME_TAKEN"

    def __init__(self, name: str):
        super().__init__(
            message=f"An entity named {name!r} already exists.",
            details={"name": name},
        )


class SubmissionNotFoundError(SadhanaException):
    http_status = status.HTTP_404_NOT_FOUND
    code = "SUBMISSION_NOT_FOUND"

    def __init__(self, submission_id: int):
        super().__init__(
            message=f"Submission {submission_id} does not exist.",
            details={"submission_id": submission_id},
        )


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

async def sadhana_exception_handler(request: Request, exc: SadhanaException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.http_status,
        content=exc.to_dict(),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Return structured 422 with machine-readable field errors."""
    field_errors = []
    for error in exc.errors():
        field_errors.append({
            "field": ".".join(str(loc) for loc in error["loc"] if loc != "body"),
            "message": error["msg"],
            "type": error["type"],
        })
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "code": "VALIDATION_ERROR",
            "message": "Request validation failed.",
            "details": {"errors": field_errors},
        },
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "unhandled_exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        exc_info=exc,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "code": "INTERNAL_ERROR",
            "message": "An unexpected error occurred.",
        },
    )
