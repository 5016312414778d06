"""Centralized error translation.

Every failure, whether raised by a route, a dependency, or a middleware,
ends up in ``render_error``. Upstream faults are first normalized into
operational ``AppError`` instances, then rendered verbosely in development
and redacted in production.
"""

import logging
import re
import traceback

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from jose import ExpiredSignatureError, JWTError
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import DataError, DBAPIError, IntegrityError, StatementError
from starlette.exceptions import HTTPException as StarletteHTTPException

from infographic_api.errors import (
    AppError,
    ConflictError,
    InternalError,
    InvalidTokenError,
    NotFoundError,
    TokenExpiredError,
    TooManyRequestsError,
    ValidationError,
)

logger = logging.getLogger("infographic_api")

GENERIC_MESSAGE = "Something went very wrong!"
_UNIQUE_COLUMN = re.compile(r"UNIQUE constraint failed: \w+\.(\w+)|Key \((\w+)\)=\(([^)]*)\)")


def _duplicate_message(exc: IntegrityError) -> str:
    match = _UNIQUE_COLUMN.search(str(exc.orig))
    if not match:
        return "Duplicate field value. Please use another value!"
    if match.group(3) is not None:
        return f'Duplicate field value: "{match.group(3)}". Please use another value!'
    return f"Duplicate field value: {match.group(1)}. Please use another value!"


def _validation_message(exc: RequestValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ()) if item != "body")
        message = error.get("msg", "invalid")
        parts.append(f"{location}: {message}" if location else message)
    return "Invalid input data. " + ". ".join(parts)


def normalize_error(exc: Exception, request: Request | None = None) -> Exception:
    """Map known upstream faults to operational AppErrors; leave everything else untouched."""
    if isinstance(exc, AppError):
        return exc
    if isinstance(exc, RequestValidationError):
        return ValidationError(_validation_message(exc))
    if isinstance(exc, IntegrityError):
        if "UNIQUE" in str(exc.orig).upper() or "DUPLICATE" in str(exc.orig).upper():
            return ConflictError(_duplicate_message(exc))
        return ValidationError("Invalid input data.")
    if isinstance(exc, DataError) or (isinstance(exc, StatementError) and not isinstance(exc, DBAPIError)):
        return ValidationError("Invalid input data.")
    if isinstance(exc, OverflowError):
        # Integer ids beyond the 64-bit column range.
        return ValidationError("Invalid input data.")
    if isinstance(exc, ExpiredSignatureError):
        return TokenExpiredError()
    if isinstance(exc, JWTError):
        return InvalidTokenError()
    if isinstance(exc, RateLimitExceeded):
        return TooManyRequestsError()
    if isinstance(exc, StarletteHTTPException):
        if exc.status_code == 404 and request is not None:
            return NotFoundError(f"Can't find {request.url.path} on this server!")
        return AppError(str(exc.detail), status_code=exc.status_code)
    return exc


def render_error(exc: Exception, request: Request | None, production: bool) -> JSONResponse:
    """Build the client-facing error envelope."""
    error = normalize_error(exc, request)
    if not isinstance(error, AppError):
        wrapped = InternalError(str(error) or GENERIC_MESSAGE)
        wrapped.__cause__ = error
        original = error
        error = wrapped
    else:
        original = exc

    if not production:
        if not error.is_operational:
            logger.error("Unhandled error: %s", original, exc_info=original)
        content = {
            "status": error.status,
            "error": {
                "name": type(original).__name__,
                "statusCode": error.status_code,
                "isOperational": error.is_operational,
            },
            "message": error.message,
            "stack": "".join(traceback.format_exception(type(original), original, original.__traceback__)),
        }
        return JSONResponse(status_code=error.status_code, content=content)

    if error.is_operational:
        return JSONResponse(
            status_code=error.status_code,
            content={"status": error.status, "message": error.message},
        )

    logger.error("ERROR %s", original, exc_info=original)
    return JSONResponse(status_code=500, content={"status": "error", "message": GENERIC_MESSAGE})


def register_error_handlers(app: FastAPI, production: bool) -> None:
    """Route framework-level exceptions through the translator."""

    async def handle(request: Request, exc: Exception) -> JSONResponse:
        return render_error(exc, request, production)

    for exc_class in (
        AppError,
        RequestValidationError,
        StarletteHTTPException,
        IntegrityError,
        StatementError,
        JWTError,
        RateLimitExceeded,
    ):
        app.add_exception_handler(exc_class, handle)
