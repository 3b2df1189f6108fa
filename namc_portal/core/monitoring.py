"""
Logfire monitoring for the portal.

``initialize_logfire`` turns on tracing of FastAPI routes, SQLAlchemy queries
and outgoing HubSpot calls when ``LOGFIRE_ENABLED`` and ``LOGFIRE_TOKEN`` are
set. The ``log_*`` helpers send structured events (API requests, sync runs,
security events, unexpected errors) and fall back to a debug log line when
Logfire is unavailable, so callers never need to guard them.
"""

import logging
import os
from typing import Any, Callable, Optional

from fastapi import FastAPI

logger = logging.getLogger(__name__)


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


LOGFIRE_ENABLED = _env_flag("LOGFIRE_ENABLED", "false")
LOGFIRE_TOKEN = os.getenv("LOGFIRE_TOKEN", "")
LOGFIRE_ENVIRONMENT = os.getenv("LOGFIRE_ENVIRONMENT", os.getenv("NAMC_PORTAL_ENVIRONMENT", "development"))
LOGFIRE_SERVICE_NAME = os.getenv("LOGFIRE_SERVICE_NAME", "namc-portal-api")
LOGFIRE_SERVICE_VERSION = os.getenv("LOGFIRE_SERVICE_VERSION", "0.1.0")

LOGFIRE_TRACE_SQLALCHEMY = _env_flag("LOGFIRE_TRACE_SQLALCHEMY", "true")
LOGFIRE_TRACE_HTTPX = _env_flag("LOGFIRE_TRACE_HTTPX", "true")
LOGFIRE_TRACE_FASTAPI = _env_flag("LOGFIRE_TRACE_FASTAPI", "true")


def initialize_logfire(app: Optional[FastAPI] = None) -> bool:
    """
    Configure Logfire and install the enabled instrumentations.

    Args:
        app: Application to instrument; FastAPI tracing is skipped without it.

    Returns:
        True when Logfire was configured.
    """
    if not LOGFIRE_ENABLED:
        logger.info("Logfire monitoring is disabled (LOGFIRE_ENABLED is not set)")
        return False
    if not LOGFIRE_TOKEN:
        logger.warning("LOGFIRE_ENABLED is set but LOGFIRE_TOKEN is empty; monitoring stays off")
        return False

    import logfire

    logfire.configure(
        token=LOGFIRE_TOKEN,
        service_name=LOGFIRE_SERVICE_NAME,
        service_version=LOGFIRE_SERVICE_VERSION,
        environment=LOGFIRE_ENVIRONMENT,
    )

    instrumentations: list[tuple[str, bool, Callable[[], Any]]] = [
        ("SQLAlchemy", LOGFIRE_TRACE_SQLALCHEMY, logfire.instrument_sqlalchemy),
        ("HTTPX (HubSpot)", LOGFIRE_TRACE_HTTPX, logfire.instrument_httpx),
        ("FastAPI", LOGFIRE_TRACE_FASTAPI and app is not None, lambda: logfire.instrument_fastapi(app=app)),
    ]
    for name, enabled, instrument in instrumentations:
        if not enabled:
            continue
        try:
            instrument()
            logger.info(f"Logfire: {name} instrumentation enabled")
        except Exception as e:
            logger.warning(f"Failed to instrument {name}: {e}")

    logger.info(f"Logfire monitoring initialized: service={LOGFIRE_SERVICE_NAME}, environment={LOGFIRE_ENVIRONMENT}")
    return True


def _emit(level: str, message: str, fallback: str, **attributes: Any) -> None:
    try:
        import logfire

        getattr(logfire, level)(message, **attributes)
    except Exception:
        logger.debug(fallback)


def log_api_request(method: str, path: str, status_code: int, duration_ms: float) -> None:
    """Record one completed API request with its status and latency."""
    _emit(
        "info",
        "API request completed",
        f"Could not log API request to Logfire: {method} {path}",
        method=method,
        path=path,
        status_code=status_code,
        duration_ms=duration_ms,
    )


def log_sync_run(dry_run: bool, full_sync: bool, stats: dict) -> None:
    """
    Record the outcome of a HubSpot batch sync.

    Args:
        dry_run: Whether the run skipped HubSpot writes
        full_sync: Whether every record was selected
        stats: Serialized sync statistics
    """
    _emit(
        "info",
        "HubSpot sync completed",
        "Could not log HubSpot sync run to Logfire",
        **{**stats, "dry_run": dry_run, "full_sync": full_sync},
    )


def log_security_event(event: str, ip_address: str, context: Optional[dict] = None) -> None:
    """Record a rate limit violation, IP block or similar event for ``ip_address``."""
    _emit(
        "warn",
        f"Security event: {event}",
        f"Could not log security event to Logfire: {event} ip={ip_address}",
        ip_address=ip_address,
        **(context or {}),
    )


def log_error(error_type: str, error_message: str, context: Optional[dict] = None) -> None:
    _emit("error", f"{error_type}: {error_message}", f"Could not log error to Logfire: {error_type}", **(context or {}))
