"""Unit tests for logging configuration module.

Tests verify that the logging configuration functions work correctly with different
scenarios including various log levels, formats, and file logging options.
"""

import logging
from pathlib import Path
from unittest.mock import patch

import pytest

from takt.core.logging_config import (
    DETAILED_FORMAT,
    JSON_FORMAT,
    MODULE_LOG_LEVELS,
    SIMPLE_FORMAT,
    get_logger,
    setup_logging,
)

MODULE = "takt.core.logging_config"


def console_handler() -> logging.Handler:
    return next(h for h in logging.getLogger().handlers if type(h) is logging.StreamHandler)


class TestSetupLogging:
    @pytest.mark.parametrize(
        "log_level,expected_level",
        [
            ("DEBUG", logging.DEBUG),
            ("INFO", logging.INFO),
            ("WARNING", logging.WARNING),
            ("error", logging.ERROR),
        ],
    )
    def test_console_level(self, log_level, expected_level):
        setup_logging(log_level=log_level, enable_file=False)

        assert console_handler().level == expected_level

    @pytest.mark.parametrize(
        "log_format,expected_format",
        [
            ("simple", SIMPLE_FORMAT),
            ("detailed", DETAILED_FORMAT),
            ("json", JSON_FORMAT),
            ("unknown", DETAILED_FORMAT),
        ],
    )
    def test_formats(self, log_format, expected_format):
        setup_logging(log_format=log_format, enable_file=False)

        assert console_handler().formatter._fmt == expected_format

    def test_root_logger_captures_everything(self):
        setup_logging(log_level="ERROR", enable_file=False)

        assert logging.getLogger().level == logging.DEBUG

    def test_repeated_setup_does_not_duplicate_handlers(self):
        setup_logging(enable_file=False)
        setup_logging(enable_file=False)

        assert len(logging.getLogger().handlers) == 1

    def test_file_logging_needs_configuration(self):
        with patch(f"{MODULE}.ENABLE_FILE_LOGGING", False):
            setup_logging(enable_file=True)

        assert not any(isinstance(h, logging.FileHandler) for h in logging.getLogger().handlers)

    def test_file_logging_creates_directory(self, tmp_path: Path):
        log_dir = tmp_path / "logs"

        with patch(f"{MODULE}.LOG_FILE_DIR", str(log_dir)), patch(f"{MODULE}.ENABLE_FILE_LOGGING", True):
            setup_logging(enable_file=True)

        file_handlers = [h for h in logging.getLogger().handlers if isinstance(h, logging.FileHandler)]
        assert len(file_handlers) == 1
        assert file_handlers[0].level == logging.DEBUG
        assert (log_dir / "takt.log").exists()
        file_handlers[0].close()
        setup_logging(enable_file=False)

    @pytest.mark.parametrize(
        "module_name,expected_level",
        [
            ("takt.server.api", logging.DEBUG),
            ("takt.server.middleware", logging.INFO),
            ("takt.core.audit", logging.INFO),
            ("sqlalchemy.engine", logging.WARNING),
            ("httpx", logging.WARNING),
        ],
    )
    def test_module_levels(self, module_name, expected_level):
        setup_logging(enable_file=False)

        assert logging.getLogger(module_name).level == expected_level

    def test_every_module_level_is_valid(self):
        for level in MODULE_LOG_LEVELS.values():
            assert level in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class TestGetLogger:
    def test_returns_named_logger(self):
        logger = get_logger("takt.server.api.v1.demand")

        assert isinstance(logger, logging.Logger)
        assert logger.name == "takt.server.api.v1.demand"

    def test_same_name_same_instance(self):
        assert get_logger("takt.core.tenancy") is get_logger("takt.core.tenancy")

    def test_inherits_module_level(self):
        setup_logging(enable_file=False)

        assert get_logger("takt.server.api.v1.supply").getEffectiveLevel() == logging.DEBUG

    def test_records_reach_caplog(self, caplog):
        logger = get_logger("takt.core.audit")

        with caplog.at_level(logging.INFO, logger="takt.core.audit"):
            logger.info("Audit log written")

        assert "Audit log written" in caplog.text
