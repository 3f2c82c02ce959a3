"""Shared error handling utilities for tool wrappers."""

from __future__ import annotations

import inspect
from collections.abc import Callable
from functools import wraps
from typing import TypeVar

from coredump_mcp.core.exceptions import (
    CoredumpError,
    ExecutionTimeoutError,
    NotFoundError,
    ToolNotFoundError,
    ValidationError,
)
from coredump_mcp.core.logging_config import get_logger
from coredump_mcp.core.result import ToolResult, failure

logger = get_logger(__name__)

F = TypeVar("F", bound=Callable[..., ToolResult])


def _handle_exception(exc: Exception, tool_name: str) -> ToolResult:
    """Convert exceptions raised by a tool into ToolError results.

    Args:
        exc: The exception to handle
        tool_name: Name of the tool that raised the exception

    Returns:
        ToolResult with appropriate error code and message
    """
    if isinstance(exc, ValidationError):
        return failure("INVALID_PARAMS", str(exc), **exc.details)

    if isinstance(exc, NotFoundError):
        return failure(
            "NOT_FOUND",
            str(exc),
            hint="Call list_coredumps to see the available coredump IDs",
            coredump_id=exc.coredump_id,
        )

    if isinstance(exc, ToolNotFoundError):
        return failure(
            "TOOL_NOT_FOUND",
            str(exc),
            hint="Install systemd-coredump and gdb, or set COREDUMPCTL_PATH / GDB_PATH",
            tool_name=exc.tool_name,
        )

    if isinstance(exc, ExecutionTimeoutError):
        return failure(
            "TIMEOUT",
            f"Command timed out after {exc.timeout_seconds} seconds",
            timeout_seconds=exc.timeout_seconds,
        )

    if isinstance(exc, CoredumpError):
        logger.error(f"Tool '{tool_name}' failed: {exc}")
        return failure("INTERNAL_ERROR", str(exc), code=exc.error_code)

    logger.exception("Unexpected error in tool '%s'", tool_name)
    return failure(
        "INTERNAL_ERROR",
        f"{tool_name} failed: {exc}",
        exception_type=exc.__class__.__name__,
    )


def handle_tool_errors(func: F) -> F:
    """Wrap a tool function so that raised exceptions become ToolError results."""
    tool_name = func.__name__

    if inspect.iscoroutinefunction(func):

        @wraps(func)
        async def async_wrapper(*args, **kwargs) -> ToolResult:
            try:
                return await func(*args, **kwargs)
            except Exception as exc:
                return _handle_exception(exc, tool_name)

        return async_wrapper  # type: ignore

    @wraps(func)
    def sync_wrapper(*args, **kwargs) -> ToolResult:
        try:
            return func(*args, **kwargs)
        except Exception as exc:
            return _handle_exception(exc, tool_name)

    return sync_wrapper  # type: ignore
