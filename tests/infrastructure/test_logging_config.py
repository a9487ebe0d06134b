"""Tests for structured logging setup."""

import json
import logging
import sys

import pytest

from fhir_bridge.infrastructure.logging_config import (
    StructuredFormatter,
    configure_logging,
    get_logger,
    setup_logging,
    translation_context,
)
from fhir_bridge.infrastructure.settings import Settings


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


class TestStructuredFormatter:
    """Test JSON log line formatting."""

    def test_format_includes_core_fields(self):
        """Test level, logger and message are present."""
        record = logging.LogRecord(
            "fhir_bridge.translators", logging.DEBUG, __file__, 10,
            "No %s found", ("Patient",), None,
        )

        data = json.loads(StructuredFormatter().format(record))

        assert data["level"] == "DEBUG"
        assert data["logger"] == "fhir_bridge.translators"
        assert data["message"] == "No Patient found"
        assert data["timestamp"].endswith("Z")

    def test_extra_fields_merged(self):
        """Test translation context is merged into the JSON line."""
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", (), None)
        record.extra_fields = {"resource_type": "Condition", "resource_id": "c-1"}

        data = json.loads(StructuredFormatter().format(record))

        assert data["resource_type"] == "Condition"
        assert data["resource_id"] == "c-1"

    def test_exception_included(self):
        """Test exception text is rendered."""
        try:
            raise ValueError("bad reference")
        except ValueError:
            record = logging.LogRecord("x", logging.ERROR, __file__, 1, "failed", (), sys.exc_info())

        data = json.loads(StructuredFormatter().format(record))

        assert "ValueError: bad reference" in data["exception"]


    def test_translation_context_round_trips_through_logger(self, caplog):
        """Test context passed as ``extra`` reaches the JSON line without unset keys."""
        logger = logging.getLogger("fhir_bridge.test")
        with caplog.at_level(logging.INFO, logger="fhir_bridge.test"):
            logger.info("translated", extra=translation_context("Observation", None, index=2))

        record, = caplog.records
        data = json.loads(StructuredFormatter().format(record))

        assert data["resource_type"] == "Observation"
        assert data["index"] == 2
        assert "resource_id" not in data

class TestSetupLogging:
    """Test root logger configuration."""

    def test_json_handler(self):
        """Test JSON mode installs the structured formatter."""
        setup_logging(use_json=True, log_level="debug")

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, StructuredFormatter)
        assert logging.getLogger("duckdb").level == logging.WARNING

    def test_handler_writes_to_stderr(self):
        """Test log lines stay off stdout."""
        setup_logging()

        assert logging.getLogger().handlers[0].stream is sys.stderr

    def test_text_handler_and_unknown_level(self):
        """Test text mode and the INFO fallback for unknown levels."""
        setup_logging(use_json=False, log_level="chatty")

        root = logging.getLogger()
        assert root.level == logging.INFO
        assert not isinstance(root.handlers[0].formatter, StructuredFormatter)

    def test_configure_from_settings(self, monkeypatch):
        """Test settings drive the log level and format."""
        monkeypatch.setenv("FB_LOG_LEVEL", "WARNING")
        monkeypatch.setenv("FB_LOG_JSON", "true")

        configure_logging(Settings())

        root = logging.getLogger()
        assert root.level == logging.WARNING
        assert isinstance(root.handlers[0].formatter, StructuredFormatter)

    def test_verbose_overrides_settings_level(self, monkeypatch):
        """Test verbose forces DEBUG over the configured level."""
        monkeypatch.setenv("FB_LOG_LEVEL", "ERROR")

        configure_logging(Settings(), verbose=True)

        assert logging.getLogger().level == logging.DEBUG

    def test_get_logger(self):
        """Test named loggers are returned."""
        assert get_logger("fhir_bridge.registry").name == "fhir_bridge.registry"
