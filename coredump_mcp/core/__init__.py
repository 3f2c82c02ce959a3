"""
Core utilities for coredump_mcp.

This package contains the coredumpctl/gdb parsers, the dump registry, and the
execution, error handling and logging helpers shared by the tool modules.
"""

from coredump_mcp.core.decorators import log_execution
from coredump_mcp.core.exceptions import (
    CoredumpError,
    ExecutionTimeoutError,
    ListingParseError,
    NotFoundError,
    ToolExecutionError,
    ToolNotFoundError,
    ValidationError,
)
from coredump_mcp.core.execution import execute_subprocess_async
from coredump_mcp.core.logging_config import get_logger, setup_logging
from coredump_mcp.core.registry import DumpRegistry

__all__ = [
    "CoredumpError",
    "ExecutionTimeoutError",
    "ListingParseError",
    "NotFoundError",
    "ToolExecutionError",
    "ToolNotFoundError",
    "ValidationError",
    "execute_subprocess_async",
    "get_logger",
    "setup_logging",
    "log_execution",
    "DumpRegistry",
]
