"""Tests for logging configuration."""

import json
import logging

from ccrfast.logging_config import (
    ROOT_LOGGER_NAME,
    StructuredFormatter,
    configure_logging,
    disable_logging,
    enable_logging,
    get_logger,
    get_performance_logger,
)


class TestLoggers:
    """Test logger helpers."""

    def test_get_logger_in_hierarchy(self):
        logger = get_logger("ccrfast.fast.base")
        assert logger.name == "ccrfast.fast.base"

    def test_get_logger_level_override(self):
        logger = get_logger("ccrfast.tests.level", level="debug")
        assert logger.level == logging.DEBUG

    def test_performance_logger_name(self):
        logger = get_performance_logger("engine")
        assert logger.name == "ccrfast.performance.engine"

    def test_configure_and_disable(self, tmp_path):
        """File logging writes to the given path; disabling removes the handlers."""
        log_file = tmp_path / "logs" / "ccrfast.log"
        try:
            configure_logging(level="INFO", log_file=str(log_file), console=False)
            get_logger("ccrfast.tests").info("Written")
            root = logging.getLogger(ROOT_LOGGER_NAME)
            for handler in root.handlers:
                handler.flush()
            assert "Written" in log_file.read_text(encoding="utf-8")
            disable_logging()
            assert all(isinstance(h, logging.NullHandler) for h in root.handlers)
        finally:
            for handler in logging.getLogger(ROOT_LOGGER_NAME).handlers:
                handler.close()
            configure_logging()

    def test_enable_after_disable(self):
        root = logging.getLogger(ROOT_LOGGER_NAME)
        try:
            disable_logging()
            enable_logging(level="ERROR")
            assert root.level == logging.ERROR
            assert any(type(h) is logging.StreamHandler for h in root.handlers)
            assert not any(isinstance(h, logging.NullHandler) for h in root.handlers)
        finally:
            configure_logging()


class TestStructuredFormatter:
    """Test JSON log records."""

    def test_extra_fields_in_output(self):
        record = logging.LogRecord(
            "ccrfast.fast", logging.DEBUG, __file__, 10, "Fast pricer selected", None, None
        )
        record.pricer = "SwapPricer"
        payload = json.loads(StructuredFormatter().format(record))
        assert payload["message"] == "Fast pricer selected"
        assert payload["level"] == "DEBUG"
        assert payload["pricer"] == "SwapPricer"
