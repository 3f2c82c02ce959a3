"""
Smoke tests for core.logging_config.
"""

import json
import logging
import sys

import pytest

from coredump_mcp.core import config as config_module
from coredump_mcp.core.config import reset_config
from coredump_mcp.core.logging_config import JSONFormatter, get_logger, setup_logging


@pytest.fixture
def isolated_logging(monkeypatch, tmp_path):
    """Point LOG_FILE at tmp_path and restore the package logger afterwards."""
    monkeypatch.setattr(config_module, "_CONFIG", None)
    monkeypatch.setenv("LOG_FILE", str(tmp_path / "logs" / "app.log"))
    logger = logging.getLogger("coredump_mcp")
    saved = (list(logger.handlers), logger.level, logger.propagate)
    yield tmp_path / "logs" / "app.log"
    for handler in logger.handlers:
        if handler not in saved[0]:
            handler.close()
    logger.handlers[:] = saved[0]
    logger.setLevel(saved[1])
    logger.propagate = saved[2]


def test_get_logger_nests_under_package():
    assert get_logger("coredump_mcp.core.registry").name == "coredump_mcp.core.registry"
    assert get_logger("tests").name == "coredump_mcp.tests"
    assert get_logger("coredump_mcp").name == "coredump_mcp"


def test_setup_logging_human_format(monkeypatch, isolated_logging):
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    reset_config()

    setup_logging()
    get_logger("test_human").debug("hello file")

    root = logging.getLogger("coredump_mcp")
    assert root.level == logging.DEBUG
    assert root.propagate is False
    console = [h for h in root.handlers if type(h) is logging.StreamHandler]
    assert console and console[0].stream is sys.stderr
    for handler in root.handlers:
        handler.flush()
    assert "hello file" in isolated_logging.read_text()


def test_setup_logging_json_format(monkeypatch, isolated_logging):
    monkeypatch.setenv("LOG_FORMAT", "json")
    reset_config()

    setup_logging()
    get_logger("test_json").info(
        "listed", extra={"tool_name": "list_coredumps", "execution_time_ms": 12}
    )
    for handler in logging.getLogger("coredump_mcp").handlers:
        handler.flush()

    entry = json.loads(isolated_logging.read_text().splitlines()[-1])
    assert entry["message"] == "listed"
    assert entry["tool_name"] == "list_coredumps"
    assert entry["execution_time_ms"] == 12
    assert entry["level"] == "INFO"


def test_setup_logging_survives_unwritable_log_file(monkeypatch, isolated_logging, tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    monkeypatch.setenv("LOG_FILE", str(blocker / "app.log"))
    reset_config()

    setup_logging()

    handlers = logging.getLogger("coredump_mcp").handlers
    assert len(handlers) == 1


def test_json_formatter_includes_exception():
    formatter = JSONFormatter()
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        record = logging.LogRecord(
            "coredump_mcp.x", logging.ERROR, __file__, 1, "failed", None, sys.exc_info()
        )
    record.coredump_id = "Sat 2023-06-17 01:50:45 JST-2465"

    entry = json.loads(formatter.format(record))

    assert entry["coredump_id"] == "Sat 2023-06-17 01:50:45 JST-2465"
    assert "RuntimeError: boom" in entry["exception"]
