"""Unit tests for logging configuration module.

Tests cover log levels and formats of the console handler, file logging
(application log plus the separate audit log) and the audit helper.
"""

import logging
from unittest.mock import patch

import pytest

from namc_portal.core import logging_config
from namc_portal.core.logging_config import (
    AUDIT_LOGGER_NAME,
    DETAILED_FORMAT,
    JSON_FORMAT,
    SIMPLE_FORMAT,
    AuditRecordFilter,
    get_audit_logger,
    log_auth_action,
    setup_logging,
)


@pytest.fixture(autouse=True)
def restore_handlers():
    """setup_logging replaces handlers; put the previous ones back after each test."""
    root, audit = logging.getLogger(), get_audit_logger()
    saved = (root.handlers[:], root.level, audit.handlers[:], audit.level)
    yield
    for logger in (root, audit):
        for handler in logger.handlers[:]:
            logger.removeHandler(handler)
            if handler not in saved[0] + saved[2]:
                handler.close()
    root.handlers[:], audit.handlers[:] = saved[0], saved[2]
    root.setLevel(saved[1])
    audit.setLevel(saved[3])


def console_handler() -> logging.Handler:
    return next(h for h in logging.getLogger().handlers if type(h) is logging.StreamHandler)


class TestSetupLoggingLevelsAndFormats:
    @pytest.mark.parametrize(
        "log_level,expected_level",
        [("DEBUG", logging.DEBUG), ("warning", logging.WARNING), ("ERROR", logging.ERROR)],
    )
    def test_console_level(self, log_level, expected_level):
        setup_logging(log_level=log_level, enable_file=False)

        assert console_handler().level == expected_level

    @pytest.mark.parametrize(
        "log_format,expected_format",
        [("simple", SIMPLE_FORMAT), ("detailed", DETAILED_FORMAT), ("json", JSON_FORMAT), ("other", DETAILED_FORMAT)],
    )
    def test_console_format(self, log_format, expected_format):
        setup_logging(log_format=log_format, enable_file=False)

        assert console_handler().formatter._fmt == expected_format

    def test_module_levels(self):
        setup_logging(enable_file=False)

        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING
        assert logging.getLogger(AUDIT_LOGGER_NAME).level == logging.INFO

    def test_repeated_setup_does_not_duplicate_handlers(self):
        setup_logging(enable_file=False)
        setup_logging(enable_file=False)

        assert len(logging.getLogger().handlers) == 1


class TestFileLogging:
    def test_disabled(self):
        setup_logging(enable_file=False)

        assert not any(isinstance(h, logging.FileHandler) for h in logging.getLogger().handlers)
        assert get_audit_logger().handlers == []

    def test_application_and_audit_files(self, tmp_path):
        with patch.object(logging_config, "LOG_FILE_DIR", str(tmp_path)):
            setup_logging(enable_file=True)

        log_auth_action("LOGIN_SUCCESS", user_id="u-1", email="a@example.com", ip_address="198.51.100.7")
        for handler in logging.getLogger().handlers + get_audit_logger().handlers:
            handler.flush()

        audit_line = (tmp_path / "audit.log").read_text().strip()
        assert "AUDIT action=LOGIN_SUCCESS user_id=u-1 email=a@example.com ip_address=198.51.100.7" in audit_line
        assert "[AUDIT] LOGIN_SUCCESS" in (tmp_path / "namc_portal.log").read_text()


class TestAuditRecordFilter:
    def test_fills_missing_fields(self):
        record = logging.LogRecord(AUDIT_LOGGER_NAME, logging.INFO, __file__, 1, "plain", None, None)

        assert AuditRecordFilter().filter(record) is True
        assert (record.audit_action, record.user_id, record.email, record.audit_details) == ("-", "-", "-", "")

    def test_details_skip_none_values(self):
        record = logging.LogRecord(AUDIT_LOGGER_NAME, logging.INFO, __file__, 1, "x", None, None)
        record.details = {"reason": "locked", "target_id": None, "attempts": 5}

        AuditRecordFilter().filter(record)

        assert record.audit_details == "attempts=5 reason=locked"


class TestLogAuthAction:
    def test_extra_fields(self, caplog):
        with caplog.at_level(logging.INFO, logger=AUDIT_LOGGER_NAME):
            log_auth_action("ACCOUNT_LOCKED", user_id="u-2", reason="too_many_attempts")

        record = caplog.records[-1]
        assert record.getMessage() == "[AUDIT] ACCOUNT_LOCKED user_id=u-2 email=None"
        assert record.audit_action == "ACCOUNT_LOCKED"
        assert record.details == {"reason": "too_many_attempts"}
