"""Tests for logging setup (player_roles/logging_config.py)."""

import json
import logging

import pytest

from player_roles.logging_config import JsonFormatter, configure_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.mark.unit
def test_configure_logging_sets_level(restore_root_logger):
    handler = configure_logging("warning", "simple")

    assert restore_root_logger.level == logging.WARNING
    assert handler in restore_root_logger.handlers


@pytest.mark.unit
def test_configure_logging_replaces_previous_handler(restore_root_logger):
    first = configure_logging("INFO", "detailed")
    second = configure_logging("INFO", "json")

    assert first not in restore_root_logger.handlers
    assert second in restore_root_logger.handlers
    assert isinstance(second.formatter, JsonFormatter)


@pytest.mark.unit
def test_json_formatter_output():
    record = logging.LogRecord("player_roles.loader", logging.WARNING, __file__, 1, "bad %s", ("role",), None)

    payload = json.loads(JsonFormatter().format(record))

    assert payload["level"] == "WARNING"
    assert payload["logger"] == "player_roles.loader"
    assert payload["message"] == "bad role"
