"""
Error taxonomy and the boundary handlers that turn it into the response envelope.

Every failure a service can report is an ``AccountServiceError`` subclass that
carries its ``ErrorKind`` and HTTP status. Handlers registered on the app
translate them, FastAPI request validation errors, and anything unexpected into
the same ``{"status": "FAILURE", "errors": [...]}`` body.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from starlette.responses import JSONResponse

from accounthub_shared.schemas.common import ApiResponse

log = structlog.get_logger()

BUSINESS_EXCEPTION = "BUSINESS_EXCEPTION"


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    BUSINESS = "business"
    CONFLICT = "conflict"
    AUTH = "auth"
    UPSTREAM = "upstream"


class AccountServiceError(Exception):
    """Base class for every failure reported to API callers."""

    kind: ErrorKind = ErrorKind.BUSINESS
    status_code: int = 400
    error: str = BUSINESS_EXCEPTION
    retryable: bool = False

    def __init__(self, message: str, *, error: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if error is not None:
            self.error = error


class ValidationFailed(AccountServiceError):
    kind = ErrorKind.VALIDATION
    error = "VALIDATION_ERROR"


class BusinessConflict(AccountServiceError):
    kind = ErrorKind.BUSINESS


class AccountNotFound(BusinessConflict):
    pass


class OrganizationNotFound(BusinessConflict):
    pass


class AlreadyAttached(BusinessConflict):
    pass


class AccountConflict(BusinessConflict):
    """Concurrent write hit a uniqueness constraint; the caller may retry."""

    kind = ErrorKind.CONFLICT
    status_code = 409
    error = "CONFLICT"
    retryable = True


class InvalidToken(AccountServiceError):
    kind = ErrorKind.AUTH
    status_code = 401
    error = "INVALID_TOKEN"


class IdentityLookupFailed(AccountServiceError):
    kind = ErrorKind.UPSTREAM
    status_code = 500
    error = "IDENTITY_LOOKUP_FAILED"


def failure_response(status_code: int, error: str, message: Optional[str]) -> JSONResponse:
    body = ApiResponse.failure(error, message)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body))


async def handle_service_error(request: Request, exc: AccountServiceError) -> JSONResponse:
    log.warning(
        "request.failed",
        error=exc.error,
        kind=exc.kind.value,
        message=exc.message,
        retryable=exc.retryable,
    )
    response = failure_response(exc.status_code, exc.error, exc.message)
    if exc.retryable:
        response.headers["Retry-After"] = "1"
    return response


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = first.get("loc", ())
    field = ".".join(str(part) for part in location[1:]) or "request"
    message = f"{field}: {first.get('msg', 'invalid value')}"
    log.warning("request.invalid", field=field, message=message)
    return failure_response(400, "Invalid request", message)


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    log.error("request.unhandled", path=request.url.path, exc_info=exc)
    return failure_response(500, "Internal server error", str(exc))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AccountServiceError, handle_service_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
