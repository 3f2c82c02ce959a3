"""
Tool definitions for coredump_mcp.

This package contains the tool modules that expose coredumpctl and gdb to
AI agents through the MCP protocol.
"""

from coredump_mcp.tools.coredump_tools import register_coredump_tools

__all__ = ["register_coredump_tools"]
