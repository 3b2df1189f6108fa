"""HTTP middleware for the portal server."""

from .access_control import AccessControlMiddleware
from .request_logging import RequestLoggingMiddleware

__all__ = ["AccessControlMiddleware", "RequestLoggingMiddleware"]
