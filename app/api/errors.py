"""
Exception handlers - one place that turns failures into the standard error body.
Challenge: Stable codes and statuses; no internal detail leaks on 500s.
Design: Domain errors propagate untouched from the service; this module only maps them.
"""

import logging
from datetime import datetime, timezone
from http import HTTPStatus
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from app.core.exceptions import ErrorCode, ErrorKind, UserServiceError
from app.schemas.user import ErrorResponse

logger = logging.getLogger(__name__)

# Exhaustive: every ErrorKind has exactly one status
STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.DUPLICATE: status.HTTP_409_CONFLICT,
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
}

GENERIC_MESSAGE = "An unexpected error occurred"


def _format_timestamp(ts: datetime | None = None) -> str:
    ts = ts or datetime.now(timezone.utc)
    return ts.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def error_response(
    request: Request,
    status_code: int,
    code: ErrorCode,
    message: str,
    details: dict[str, str] | None = None,
    timestamp: datetime | None = None,
) -> JSONResponse:
    """Build the standard error body."""
    body = ErrorResponse(
        timestamp=_format_timestamp(timestamp),
        status=status_code,
        error=HTTPStatus(status_code).phrase,
        code=code.value,
        message=message,
        path=request.url.path,
        details=details,
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


def _field_errors(exc: RequestValidationError) -> dict[str, str]:
    """Map pydantic error locations to {field: message}; first message per field wins."""
    fields: dict[str, str] = {}
    for err in exc.errors():
        loc: tuple[Any, ...] = tuple(err.get("loc", ()))
        # Drop the "body"/"path"/"query" prefix
        parts = [str(p) for p in loc[1:]] if len(loc) > 1 else [str(p) for p in loc]
        field = ".".join(parts) or "request"
        fields.setdefault(field, err.get("msg", "Invalid value"))
    return fields


async def handle_domain_error(request: Request, exc: UserServiceError) -> JSONResponse:
    logger.warning("%s on %s: %s", exc.code.value, request.url.path, exc.message)
    return error_response(
        request,
        STATUS_BY_KIND[exc.kind],
        exc.code,
        exc.message,
        details=exc.details,
        timestamp=exc.timestamp,
    )


async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = _field_errors(exc)
    logger.warning("Request validation failed on %s: %s", request.url.path, details)
    return error_response(
        request,
        status.HTTP_400_BAD_REQUEST,
        ErrorCode.VALIDATION_ERROR,
        "Input validation failed",
        details=details,
    )


async def handle_integrity_error(request: Request, exc: IntegrityError) -> JSONResponse:
    # Lost a uniqueness race at the storage layer; reported as-is, not as DUPLICATE_USER
    logger.warning("Constraint violation on %s: %s", request.url.path, exc.orig)
    return error_response(
        request,
        status.HTTP_400_BAD_REQUEST,
        ErrorCode.CONSTRAINT_VIOLATION,
        "Data constraint violation",
    )


async def handle_storage_error(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Storage failure on %s", request.url.path, exc_info=exc)
    return error_response(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        ErrorCode.INTERNAL_ERROR,
        GENERIC_MESSAGE,
    )


async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unexpected exception on %s", request.url.path, exc_info=exc)
    return error_response(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        ErrorCode.UNKNOWN_ERROR,
        GENERIC_MESSAGE,
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(UserServiceError, handle_domain_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation)
    app.add_exception_handler(IntegrityError, handle_integrity_error)
    app.add_exception_handler(SQLAlchemyError, handle_storage_error)
    app.add_exception_handler(Exception, handle_unexpected)
