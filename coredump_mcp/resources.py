"""MCP resources for coredumps.

``coredump://{coredump_id}`` and ``coredump://{coredump_id}/stacktrace`` address a
single dump. Ids contain spaces and colons (they start with the dump's
timestamp), so clients send them percent-encoded and every handler decodes
the id before looking it up.
"""

import inspect
from collections.abc import Callable
from functools import wraps
from typing import Any, TypeVar
from urllib.parse import quote, unquote

from fastmcp import FastMCP

from coredump_mcp.core import json_utils as json
from coredump_mcp.core.decorators import log_execution
from coredump_mcp.core.gdb import format_stack_trace
from coredump_mcp.core.metrics import metrics_collector, track_metrics
from coredump_mcp.core.registry import DumpRegistry

F = TypeVar("F", bound=Callable[..., Any])

URI_SCHEME = "coredump://"


def resource_decorator(resource_name: str) -> Callable[[F], F]:
    """Apply @log_execution and @track_metrics to a resource function."""

    def decorator(func: F) -> F:
        wrapped = track_metrics(resource_name)(func)
        wrapped = log_execution(tool_name=resource_name)(wrapped)

        @wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
            return await wrapped(*args, **kwargs)

        @wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            return wrapped(*args, **kwargs)

        if inspect.iscoroutinefunction(func):
            return async_wrapper  # type: ignore[return-value]
        return sync_wrapper  # type: ignore[return-value]

    return decorator


def coredump_uri(coredump_id: str, suffix: str = "") -> str:
    """Build the resource URI of a dump, percent-encoding its id."""
    uri = f"{URI_SCHEME}{quote(coredump_id, safe='')}"
    return f"{uri}/{suffix}" if suffix else uri


def decode_coredump_id(raw_id: str) -> str:
    return unquote(raw_id)


def register_resources(mcp: FastMCP, registry: DumpRegistry) -> None:
    """Register MCP resources for AI agents."""

    # ============================================================================
    # Static Resources
    # ============================================================================

    @mcp.resource("coredump://dumps", mime_type="application/json")
    @resource_decorator("resource_list_coredumps")
    async def list_dumps() -> str:
        """All coredumps with the URIs of their detail and stack trace resources"""
        dumps = await registry.refresh()
        entries = [
            {
                "uri": coredump_uri(dump.id),
                "stacktraceUri": coredump_uri(dump.id, "stacktrace"),
                "name": f"Coredump {dump.pid} ({dump.executable_path})",
                "description": (
                    f"Core dump from {dump.executable_path} (PID {dump.pid}) at {dump.timestamp}"
                ),
            }
            for dump in dumps
        ]
        return json.dumps(entries, indent=2)

    @mcp.resource("coredump://metrics", mime_type="application/json")
    def get_metrics() -> str:
        """Call counts and timings of the coredump tools"""
        return json.dumps(metrics_collector.get_metrics(), indent=2)

    # ============================================================================
    # Dynamic Resources
    # ============================================================================

    @mcp.resource("coredump://{coredump_id}", mime_type="application/json")
    @resource_decorator("resource_get_coredump")
    async def get_coredump(coredump_id: str) -> str:
        """Detailed information about a coredump, as JSON"""
        record = await registry.get_detail(decode_coredump_id(coredump_id))
        return json.dumps(record.to_dict(), indent=2)

    @mcp.resource("coredump://{coredump_id}/stacktrace", mime_type="text/plain")
    @resource_decorator("resource_get_stacktrace")
    async def get_stacktrace(coredump_id: str) -> str:
        """Formatted gdb stack trace of a coredump"""
        decoded_id = decode_coredump_id(coredump_id)
        trace = await registry.get_stack_trace(decoded_id)
        return format_stack_trace(decoded_id, trace)
