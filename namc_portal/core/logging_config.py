"""
Logging Configuration Module.

This module provides centralized logging configuration for the NAMC portal.
It sets up console logging, optional file logging and per-module levels, and
exposes a dedicated audit logger for authentication and admin events.

Features:
- Configurable log levels per module
- Console and file logging
- Structured logging with JSON format support
- Audit trail logger for security-relevant actions
"""

import logging
import os
from pathlib import Path
from typing import Any, Optional


def _get_logging_config():
    """Get logging configuration from settings model.

    This function is used to defer settings import until needed,
    avoiding circular imports during module initialization.
    """
    try:
        from namc_portal.server.core.config import settings

        return {
            "log_level": settings.log_level.upper(),
            "log_format": settings.log_format,
            "log_file_dir": os.getenv("LOG_FILE_DIR", "logs"),
            "enable_file_logging": settings.log_to_file,
        }
    except Exception:
        # Fallback to environment variables if settings not available
        return {
            "log_level": os.getenv("NAMC_PORTAL_LOG_LEVEL", "INFO").upper(),
            "log_format": os.getenv("NAMC_PORTAL_LOG_FORMAT", "detailed"),
            "log_file_dir": os.getenv("LOG_FILE_DIR", "logs"),
            "enable_file_logging": os.getenv("NAMC_PORTAL_LOG_TO_FILE", "false").lower() in ("true", "1", "yes"),
        }


_config = _get_logging_config()
LOG_LEVEL = _config["log_level"]
LOG_FORMAT = _config["log_format"]
LOG_FILE_DIR = _config["log_file_dir"]
ENABLE_FILE_LOGGING = _config["enable_file_logging"]

AUDIT_LOGGER_NAME = "namc_portal.audit"
AUDIT_LOG_FILE = "audit.log"

SIMPLE_FORMAT = "%(levelname)s - %(name)s - %(message)s"

DETAILED_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(funcName)s() - %(message)s"

JSON_FORMAT = (
    '{"timestamp": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", '
    '"module": "%(filename)s", "function": "%(funcName)s", "line": %(lineno)d, '
    '"message": "%(message)s"}'
)

# One line per audit event, greppable by action and user
AUDIT_FORMAT = "%(asctime)s AUDIT action=%(audit_action)s user_id=%(user_id)s email=%(email)s %(audit_details)s"

# Module-specific log levels
MODULE_LOG_LEVELS = {
    "namc_portal.server": "INFO",
    "namc_portal.server.api": "DEBUG",
    "namc_portal.security": "INFO",
    "namc_portal.integrations.hubspot": "INFO",
    "namc_portal.sync": "INFO",
    AUDIT_LOGGER_NAME: "INFO",
    # Third-party libraries (reduce noise)
    "sqlalchemy": "WARNING",
    "sqlalchemy.engine": "WARNING",
    "sqlalchemy.pool": "WARNING",
    "aiosqlite": "WARNING",
    "httpx": "WARNING",
    "httpcore": "WARNING",
    "asyncio": "WARNING",
    "uvicorn": "INFO",
    "uvicorn.access": "INFO",
}


def _select_format(fmt: str) -> str:
    if fmt == "json":
        return JSON_FORMAT
    if fmt == "simple":
        return SIMPLE_FORMAT
    return DETAILED_FORMAT


class AuditRecordFilter(logging.Filter):
    """Fill the audit fields so ``AUDIT_FORMAT`` works for any record on the audit logger."""

    def filter(self, record: logging.LogRecord) -> bool:
        for name in ("audit_action", "user_id", "email"):
            if getattr(record, name, None) is None:
                setattr(record, name, "-")
        details = getattr(record, "details", None) or {}
        record.audit_details = " ".join(f"{k}={v}" for k, v in sorted(details.items()) if v is not None)
        return True


def setup_logging(
    log_level: Optional[str] = None,
    log_format: Optional[str] = None,
    enable_file: Optional[bool] = None,
) -> None:
    """
    Configure logging for the application.

    The root logger gets a console handler (plus ``namc_portal.log`` when file
    logging is on). With file logging, audit events are also written to their
    own ``audit.log`` in ``AUDIT_FORMAT``.

    Args:
        log_level: Override default log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Override default format (simple, detailed, json)
        enable_file: Whether to enable file logging (defaults to NAMC_PORTAL_LOG_TO_FILE)
    """
    level = (log_level or LOG_LEVEL).upper()
    fmt = log_format or LOG_FORMAT
    file_logging = ENABLE_FILE_LOGGING if enable_file is None else enable_file

    formatter = logging.Formatter(_select_format(fmt), datefmt="%Y-%m-%d %H:%M:%S")

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)  # handlers do the filtering
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    audit_logger = get_audit_logger()
    for handler in audit_logger.handlers[:]:
        audit_logger.removeHandler(handler)

    if file_logging:
        log_dir = Path(LOG_FILE_DIR)
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_dir / "namc_portal.log")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

        audit_handler = logging.FileHandler(log_dir / AUDIT_LOG_FILE)
        audit_handler.addFilter(AuditRecordFilter())
        audit_handler.setFormatter(logging.Formatter(AUDIT_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S"))
        audit_logger.addHandler(audit_handler)

    for module_name, module_level in MODULE_LOG_LEVELS.items():
        logging.getLogger(module_name).setLevel(module_level)

    root_logger.info(f"Logging configured: level={level}, format={fmt}, file_logging={file_logging}")


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Args:
        name: The module name (typically __name__)

    Returns:
        A configured logger instance
    """
    return logging.getLogger(name)


def get_audit_logger() -> logging.Logger:
    """Logger for the security audit trail."""
    return logging.getLogger(AUDIT_LOGGER_NAME)


def log_auth_action(action: str, *, user_id: Optional[str] = None, email: Optional[str] = None, **details: Any) -> None:
    """
    Record an authentication or administrative event on the audit logger.

    Args:
        action: Event name, e.g. ``LOGIN_SUCCESS`` or ``MEMBER_UPDATE``
        user_id: Acting or affected user id, when known
        email: Email involved in the event, when known
        details: Extra key/value context (ip address, reason, target ids)
    """
    get_audit_logger().info(
        f"[AUDIT] {action} user_id={user_id} email={email}",
        extra={"audit_action": action, "user_id": user_id, "email": email, "details": details},
    )
