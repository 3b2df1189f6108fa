"""
Exception handlers for the FastAPI application.

``APIError`` subclasses map to their own status and code. Details are only
sent to clients in the development environment, except for validation and
rate limit errors whose details are part of the contract. Unhandled
exceptions are logged with an error id, request context and traceback, and
answered with a generic 500.
"""

import traceback
import uuid
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from namc_portal.core.errors import APIError, ConflictError, RateLimitError, ValidationError
from namc_portal.core.logging_config import get_logger
from namc_portal.core.models.io.common import error_payload, request_id_of
from namc_portal.core.monitoring import log_error
from namc_portal.server.core.config import settings

logger = get_logger(__name__)

_ALWAYS_DETAILED = (ValidationError, RateLimitError)

_HTTP_CODES = {
    400: "BAD_REQUEST",
    401: "AUTHENTICATION_FAILED",
    403: "AUTHORIZATION_FAILED",
    404: "RESOURCE_NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "RESOURCE_CONFLICT",
    429: "RATE_LIMITED",
}


def _envelope(request: Request, status_code: int, code: str, message: str, details: Any = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=error_payload(code, message, details=details, request_id=request_id_of(request)),
    )


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    """Render a typed application error."""
    if exc.status_code >= 500:
        logger.error(f"{exc.code} in {request.method} {request.url.path}: {exc.message}", extra={"details": exc.details})
    else:
        logger.info(f"{exc.code} in {request.method} {request.url.path}: {exc.message}")
    include_details = settings.is_development or isinstance(exc, _ALWAYS_DETAILED)
    return _envelope(
        request, exc.status_code, exc.code, exc.message, exc.details if include_details else None
    )


def _field_name(loc: tuple) -> str:
    parts = [str(p) for p in loc if p not in ("body", "query", "path", "header", "cookie")]
    return ".".join(parts) or "request"


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report request validation failures as ``VALIDATION_ERROR`` with per-field details."""
    details = [
        {
            "field": _field_name(tuple(error.get("loc", ()))),
            "message": str(error.get("msg", "Invalid value")).removeprefix("Value error, "),
            "code": str(error.get("type", "invalid")),
        }
        for error in exc.errors()
    ]
    logger.info(f"Validation failed for {request.method} {request.url.path}: {details}")
    return _envelope(request, ValidationError.status_code, ValidationError.code, "Validation failed", details)


async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    """Unique and foreign key violations surface as conflicts."""
    logger.warning(f"Integrity error in {request.method} {request.url.path}: {exc.orig}")
    conflict = ConflictError("A record with this data already exists")
    details = {"error": str(exc.orig)} if settings.is_development else None
    return _envelope(request, conflict.status_code, conflict.code, conflict.message, details)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Routing errors (unknown path, wrong method) in the standard envelope."""
    code = _HTTP_CODES.get(exc.status_code, "HTTP_ERROR")
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    response = _envelope(request, exc.status_code, code, message)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Global exception handler to log detailed error information.

    This handler is called for any unhandled exception in the application.
    It logs the full error context and returns the error envelope with an
    error id that clients can use to reference the error when reporting issues.

    Args:
        request: The HTTP request that caused the exception
        exc: The exception that was raised

    Returns:
        JSONResponse with the generic 500 envelope
    """
    error_id = uuid.uuid4().hex[:12]

    logger.error(
        f"Unhandled exception [{error_id}] in {request.method} {request.url.path}: {str(exc)}",
        exc_info=True,
        extra={
            "error_id": error_id,
            "method": request.method,
            "path": request.url.path,
            "query_params": dict(request.query_params),
            "client": request.client.host if request.client else "unknown",
            "error_type": type(exc).__name__,
            "traceback": traceback.format_exc(),
        },
    )
    log_error(type(exc).__name__, str(exc), {"error_id": error_id, "path": request.url.path})

    details: dict[str, Any] = {"error_id": error_id}
    message = "An internal error occurred"
    if settings.is_development:
        message = str(exc) or message
        details["error_type"] = type(exc).__name__
    return _envelope(request, 500, "INTERNAL_ERROR", message, details)


def setup_exception_handlers(app: FastAPI) -> None:
    """
    Register exception handlers with the FastAPI application.

    Args:
        app: The FastAPI application instance
    """
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)
    logger.debug("Exception handlers registered successfully")
