"""
Logging configuration for coredump_mcp.

Structured logging with an optional JSON file format and log rotation.
The console handler writes to stderr so it never corrupts the stdio
transport.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from typing import Any, Dict

from coredump_mcp.core import json_utils as json
from coredump_mcp.core.config import get_config

ROOT_LOGGER_NAME = "coredump_mcp"


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data: Dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        # Extra fields attached by log_execution and the registry
        for field in ("tool_name", "coredump_id", "execution_time_ms", "error_code"):
            if hasattr(record, field):
                log_data[field] = getattr(record, field)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def setup_logging() -> None:
    """
    Configure logging for coredump_mcp.

    Logging configuration:
    - Log level from settings (default: INFO)
    - Log format from settings (default: human-readable)
    - Log file from settings (default: /tmp/coredump_mcp/app.log)
    - Log rotation: 10MB max size, keep 5 backup files
    """
    settings = get_config()
    log_level = settings.log_level.upper()
    log_format = settings.log_format.lower()
    log_file = settings.log_file

    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
    except OSError:
        # Console-only logging in read-only environments
        pass

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(getattr(logging, log_level, logging.INFO))
    logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(
        logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    logger.addHandler(console_handler)

    try:
        file_handler = RotatingFileHandler(
            str(log_file),
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)

        if log_format == "json":
            file_formatter = JSONFormatter()
        else:
            file_formatter = logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )

        file_handler.setFormatter(file_formatter)
        logger.addHandler(file_handler)
    except OSError as e:
        logger.warning(
            f"Could not create log file handler for {log_file}: {e}. "
            "Logging to console only."
        )

    logger.propagate = False


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance nested under the coredump_mcp logger
    """
    if name == ROOT_LOGGER_NAME or name.startswith(f"{ROOT_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
