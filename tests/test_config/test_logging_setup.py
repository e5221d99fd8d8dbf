"""Tests for recovery_engine/utils/logging.py."""

from __future__ import annotations

import json
import logging

import pytest

from recovery_engine.config import LoggingConfig
from recovery_engine.utils.logging import _JsonFormatter, configure_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def _record(msg: str, **extra) -> logging.LogRecord:
    record = logging.LogRecord("recovery_engine.test", logging.WARNING, __file__, 1, msg, None, None)
    for key, val in extra.items():
        setattr(record, key, val)
    return record


class TestJsonFormatter:
    def test_core_fields(self):
        payload = json.loads(_JsonFormatter().format(_record("hello")))
        assert payload["level"] == "WARNING"
        assert payload["logger"] == "recovery_engine.test"
        assert payload["msg"] == "hello"
        assert payload["ts"].endswith("Z")

    def test_extra_fields_included(self):
        payload = json.loads(_JsonFormatter().format(_record("x", household_id="h1")))
        assert payload["household_id"] == "h1"
        assert "lineno" not in payload

    def test_thai_not_escaped(self):
        line = _JsonFormatter().format(_record("สถานะ ถูกปฏิเสธ"))
        assert "ถูกปฏิเสธ" in line


class TestConfigureLogging:
    def test_level_and_file_handler(self, tmp_path, restore_root_logger):
        log_file = tmp_path / "logs" / "recovery.log"
        configure_logging(LoggingConfig(level="DEBUG", log_file=str(log_file)))
        assert restore_root_logger.level == logging.DEBUG
        assert log_file.parent.is_dir()
        assert len(restore_root_logger.handlers) == 2

    def test_no_file_handler_when_blank(self, restore_root_logger):
        configure_logging(LoggingConfig(level="WARNING", log_file=""))
        assert len(restore_root_logger.handlers) == 1
        assert restore_root_logger.level == logging.WARNING

    def test_repeated_calls_do_not_stack(self, restore_root_logger):
        configure_logging(LoggingConfig(log_file=""))
        configure_logging(LoggingConfig(log_file=""))
        assert len(restore_root_logger.handlers) == 1
