"""
Typed application errors.

Every error the API reports deliberately is an ``APIError`` carrying the HTTP
status, a stable machine-readable code and optional details. The exception
handlers in ``namc_portal.server.exception_handlers`` turn these into the
standard JSON error envelope.
"""

from __future__ import annotations

from typing import Any, Optional


class APIError(Exception):
    """Base class for errors that map to a fixed HTTP status and error code."""

    status_code: int = 500
    code: str = "INTERNAL_ERROR"
    default_message: str = "An internal error occurred"

    def __init__(self, message: Optional[str] = None, details: Any = None) -> None:
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"

    def to_dict(self, include_details: bool = True) -> dict[str, Any]:
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if include_details and self.details is not None:
            payload["details"] = self.details
        return payload


class ValidationError(APIError):
    status_code = 400
    code = "VALIDATION_ERROR"
    default_message = "Validation failed"


class AuthenticationError(APIError):
    status_code = 401
    code = "AUTHENTICATION_FAILED"
    default_message = "Authentication required"


class AuthorizationError(APIError):
    status_code = 403
    code = "AUTHORIZATION_FAILED"
    default_message = "Insufficient permissions"


class NotFoundError(APIError):
    """Raised when a resource does not exist (or is not visible to the caller)."""

    status_code = 404
    code = "RESOURCE_NOT_FOUND"

    def __init__(self, resource: str = "Resource", details: Any = None) -> None:
        super().__init__(f"{resource} not found", details)


class ConflictError(APIError):
    status_code = 409
    code = "RESOURCE_CONFLICT"
    default_message = "Resource conflict"


class RateLimitError(APIError):
    status_code = 429
    code = "RATE_LIMITED"
    default_message = "Too many requests"


class ExternalServiceError(APIError):
    """A dependency such as HubSpot failed or is not configured."""

    status_code = 502
    code = "EXTERNAL_SERVICE_ERROR"

    def __init__(
        self, service: str, message: Optional[str] = None, details: Any = None, status_code: Optional[int] = None
    ) -> None:
        super().__init__(f"{service} service error: {message or 'request failed'}", details)
        self.service = service
        if status_code is not None:
            self.status_code = status_code


class ConfigurationError(RuntimeError):
    """Required configuration is missing or invalid."""
