import json
import logging
import sys
from unittest.mock import patch

import pytest

from core.logging_config import (
    ColoredConsoleFormatter,
    CorrelationFilter,
    StructuredFormatter,
    get_correlation_id,
    get_logger,
    get_logging_config,
    log_function_call,
    set_correlation_id,
)


def make_record(msg="hello", level=logging.INFO, exc_info=None, **extra):
    record = logging.LogRecord(
        name="services.caption_store",
        level=level,
        pathname=__file__,
        lineno=10,
        msg=msg,
        args=(),
        exc_info=exc_info,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestLoggingConfig:
    """Test logging configuration per environment."""

    def test_development_uses_colored_console(self):
        with patch.dict("os.environ", {"ENVIRONMENT": "development", "LOG_LEVEL": "debug"}):
            config = get_logging_config()

        assert config["handlers"]["console"]["formatter"] == "colored_console"
        assert config["handlers"]["console"]["level"] == "DEBUG"
        assert "file" not in config["handlers"]

    def test_production_uses_structured_output_and_file(self):
        with patch.dict(
            "os.environ", {"ENVIRONMENT": "production", "LOG_FILE": "/tmp/review.log"}
        ):
            config = get_logging_config()

        assert config["handlers"]["console"]["formatter"] == "structured"
        assert config["handlers"]["file"]["filename"] == "/tmp/review.log"
        assert "file" in config["loggers"]["services"]["handlers"]

    def test_application_loggers_do_not_propagate(self):
        config = get_logging_config()
        for name in ("api", "services", "providers", "core"):
            assert config["loggers"][name]["propagate"] is False

    def test_get_logger(self):
        logger = get_logger("services.webhook_pipeline")

        assert isinstance(logger, logging.Logger)
        assert logger.name == "services.webhook_pipeline"


class TestCorrelation:
    """Test correlation id propagation into log records."""

    def test_filter_adds_correlation_id(self):
        set_correlation_id("corr-123")
        record = make_record()

        assert CorrelationFilter().filter(record) is True
        assert record.correlation_id == "corr-123"
        assert get_correlation_id() == "corr-123"

    def test_filter_without_correlation_id(self):
        with patch("core.logging_config.correlation_id") as var:
            var.get.return_value = None
            record = make_record()
            CorrelationFilter().filter(record)

        assert not hasattr(record, "correlation_id")


class TestStructuredFormatter:
    """Test JSON log output."""

    def test_basic_fields_and_extra(self):
        record = make_record("Stored 3 caption(s)", content_item_id="abc", received=3)

        entry = json.loads(StructuredFormatter().format(record))

        assert entry["level"] == "INFO"
        assert entry["logger"] == "services.caption_store"
        assert entry["message"] == "Stored 3 caption(s)"
        assert entry["extra"] == {"content_item_id": "abc", "received": 3}

    def test_exception_info(self):
        try:
            raise RuntimeError("disk full")
        except RuntimeError:
            record = make_record("failed", level=logging.ERROR, exc_info=sys.exc_info())

        entry = json.loads(StructuredFormatter().format(record))

        assert entry["exception"]["type"] == "RuntimeError"
        assert entry["exception"]["message"] == "disk full"
        assert "Traceback" in entry["exception"]["traceback"]

    def test_non_serializable_extra_is_stringified(self):
        record = make_record(when=object())
        entry = json.loads(StructuredFormatter().format(record))
        assert isinstance(entry["extra"]["when"], str)


class TestColoredConsoleFormatter:

    def test_includes_level_name_and_correlation(self):
        record = make_record("Caption approved", correlation_id="corr-9")

        output = ColoredConsoleFormatter().format(record)

        assert "INFO" in output
        assert "[corr-9]" in output
        assert "Caption approved" in output


class TestLogFunctionCall:
    """Test the call-logging decorator."""

    async def test_async_function(self):
        logger = logging.getLogger("tests.log_function_call")

        @log_function_call(logger)
        async def handler(value):
            return value * 2

        assert await handler(21) == 42
        assert handler.__name__ == "handler"

    async def test_async_exception_is_reraised(self):
        logger = logging.getLogger("tests.log_function_call")

        @log_function_call(logger)
        async def handler():
            raise ValueError("bad input")

        with pytest.raises(ValueError):
            await handler()

    def test_sync_function(self):
        logger = logging.getLogger("tests.log_function_call")

        @log_function_call(logger)
        def handler(a, b=1):
            return a + b

        assert handler(1, b=2) == 3
