"""Coredump tools exposed to MCP clients.

Each tool is a thin wrapper around a ``DumpRegistry`` operation that returns
a structured ``ToolResult``. The registry is injected at registration time
so every server (and every test) works against its own cache.
"""

from typing import Annotated

from fastmcp import FastMCP
from pydantic import Field

from coredump_mcp.core.decorators import log_execution
from coredump_mcp.core.error_handling import handle_tool_errors
from coredump_mcp.core.gdb import format_stack_trace
from coredump_mcp.core.metrics import track_metrics
from coredump_mcp.core.registry import DumpRegistry
from coredump_mcp.core.result import ToolResult, success
from coredump_mcp.core.validators import require_text, validate_output_path

# Wire names match the argument names existing MCP clients already send
CoredumpId = Annotated[str, Field(alias="id", description="ID of the coredump")]
OutputPath = Annotated[
    str, Field(alias="outputPath", description="Path where to save the extracted coredump")
]


def register_coredump_tools(mcp: FastMCP, registry: DumpRegistry) -> None:
    """
    Register the coredump tools with the FastMCP server.

    Args:
        mcp: The FastMCP server instance to register tools with
        registry: Dump registry shared by all tools of this server
    """

    @log_execution(tool_name="list_coredumps")
    @track_metrics("list_coredumps")
    @handle_tool_errors
    async def list_coredumps(only_present: bool = False) -> ToolResult:
        """
        List the coredumps known to systemd-coredump.

        Args:
            only_present: Only include dumps whose core file is still on disk
        """
        dumps = await registry.refresh(only_present=only_present)
        return success([dump.to_dict() for dump in dumps], count=len(dumps))

    @log_execution(tool_name="get_coredump_info")
    @track_metrics("get_coredump_info")
    @handle_tool_errors
    async def get_coredump_info(coredump_id: CoredumpId) -> ToolResult:
        """
        Get detailed information about a specific coredump.

        Args:
            coredump_id: ID of the coredump as returned by list_coredumps
        """
        require_text(coredump_id, "coredump_id")
        record = await registry.get_detail(coredump_id)
        return success(record.to_dict())

    @log_execution(tool_name="extract_coredump")
    @track_metrics("extract_coredump")
    @handle_tool_errors
    async def extract_coredump(coredump_id: CoredumpId, output_path: OutputPath) -> ToolResult:
        """
        Extract a coredump to a file.

        Args:
            coredump_id: ID of the coredump
            output_path: Path where to save the extracted coredump
        """
        require_text(coredump_id, "coredump_id")
        destination = validate_output_path(output_path)
        path = await registry.extract(coredump_id, str(destination))
        return success({"path": path, "message": f"Coredump extracted to: {path}"})

    @log_execution(tool_name="remove_coredump")
    @track_metrics("remove_coredump")
    @handle_tool_errors
    async def remove_coredump(coredump_id: CoredumpId) -> ToolResult:
        """
        Delete a coredump from systemd-coredump storage.

        Args:
            coredump_id: ID of the coredump
        """
        require_text(coredump_id, "coredump_id")
        removed = await registry.remove(coredump_id)
        return success({"removed": removed, "coredump_id": coredump_id})

    @log_execution(tool_name="get_coredump_config")
    @track_metrics("get_coredump_config")
    @handle_tool_errors
    async def get_coredump_config() -> ToolResult:
        """Get the current core dump configuration of the system."""
        config = await registry.get_config()
        data = config.to_dict()
        data["message"] = f"Core dumps are currently {'ENABLED' if config.enabled else 'DISABLED'}"
        return success(data)

    @log_execution(tool_name="set_coredump_enabled")
    @track_metrics("set_coredump_enabled")
    @handle_tool_errors
    async def set_coredump_enabled(enabled: bool) -> ToolResult:
        """
        Enable or disable core dump generation.

        Only the core size limit of the server process (and anything it
        spawns) changes; system-wide limits are not persisted.

        Args:
            enabled: Whether to enable (true) or disable (false) core dumps
        """
        applied = await registry.set_config(enabled)
        action = "enable" if enabled else "disable"
        if applied:
            message = f"Core dumps have been successfully {action}d"
        else:
            message = f"Failed to {action} core dumps"
        return success({"enabled": enabled, "applied": applied, "message": message})

    @log_execution(tool_name="get_stacktrace")
    @track_metrics("get_stacktrace")
    @handle_tool_errors
    async def get_stacktrace(coredump_id: CoredumpId) -> ToolResult:
        """
        Get the stack trace of every thread in a coredump using GDB.

        Args:
            coredump_id: ID of the coredump
        """
        require_text(coredump_id, "coredump_id")
        trace = await registry.get_stack_trace(coredump_id)
        return success(
            format_stack_trace(coredump_id, trace),
            frame_count=len(trace.frames),
            signal=trace.signal,
        )

    mcp.tool(list_coredumps)
    mcp.tool(get_coredump_info)
    mcp.tool(extract_coredump)
    mcp.tool(remove_coredump)
    mcp.tool(get_coredump_config)
    mcp.tool(set_coredump_enabled)
    mcp.tool(get_stacktrace)
