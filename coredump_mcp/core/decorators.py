"""
Decorators for common tool execution patterns.

Centralizes start/finish logging and execution time measurement for tool
and resource functions.
"""

import functools
import inspect
import time
from typing import Any, Callable, Optional, TypeVar

from coredump_mcp.core.logging_config import get_logger

logger = get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def _log_context(tool_name: str, kwargs: dict) -> dict:
    log_extra = {"tool_name": tool_name}
    coredump_id = kwargs.get("coredump_id")
    if isinstance(coredump_id, str):
        log_extra["coredump_id"] = coredump_id
    return log_extra


def _stamp_execution_time(result: Any, execution_time: int) -> None:
    if hasattr(result, "metadata") and getattr(result, "status", None) == "success":
        if result.metadata is None:
            result.metadata = {}
        result.metadata["execution_time_ms"] = execution_time


def log_execution(tool_name: Optional[str] = None) -> Callable[[F], F]:
    """
    Decorator that logs start and completion of a tool and measures its duration.

    Exceptions are logged and re-raised; converting them into results is the
    job of ``handle_tool_errors``.

    Args:
        tool_name: Name of the tool (defaults to function name)

    Returns:
        Decorated function
    """

    def decorator(func: F) -> F:
        actual_tool_name = tool_name or func.__name__

        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                start_time = time.time()
                log_extra = _log_context(actual_tool_name, kwargs)
                logger.info(f"Starting {actual_tool_name}", extra=log_extra)
                try:
                    result = await func(*args, **kwargs)
                except Exception:
                    log_extra["execution_time_ms"] = int((time.time() - start_time) * 1000)
                    logger.error(f"{actual_tool_name} failed", extra=log_extra, exc_info=True)
                    raise
                execution_time = int((time.time() - start_time) * 1000)
                _stamp_execution_time(result, execution_time)
                log_extra["execution_time_ms"] = execution_time
                logger.info(f"{actual_tool_name} completed", extra=log_extra)
                return result

            return async_wrapper  # type: ignore

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            start_time = time.time()
            log_extra = _log_context(actual_tool_name, kwargs)
            logger.info(f"Starting {actual_tool_name}", extra=log_extra)
            try:
                result = func(*args, **kwargs)
            except Exception:
                log_extra["execution_time_ms"] = int((time.time() - start_time) * 1000)
                logger.error(f"{actual_tool_name} failed", extra=log_extra, exc_info=True)
                raise
            execution_time = int((time.time() - start_time) * 1000)
            _stamp_execution_time(result, execution_time)
            log_extra["execution_time_ms"] = execution_time
            logger.info(f"{actual_tool_name} completed", extra=log_extra)
            return result

        return wrapper  # type: ignore

    return decorator
