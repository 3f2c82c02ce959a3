"""
coredump_mcp - MCP Server for systemd-coredump

This package provides an MCP server that wraps ``coredumpctl`` and ``gdb``,
letting AI agents list crash dumps, inspect and extract them, read stack
traces, and toggle core dump generation.
"""

__version__ = "0.1.0"
