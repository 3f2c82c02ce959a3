"""Lightweight configuration loader for coredump_mcp.

All configuration is loaded once from environment variables (and an optional
``.env`` file). Code calls ``get_config()`` to access the cached singleton;
tests can use ``reset_config()`` or build ad-hoc configs for dependency
injection.
"""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

LIST_FORMATS = ("json", "text")


def _parse_int(value: str | None, default: int) -> int:
    try:
        return int(value) if value is not None else default
    except (TypeError, ValueError):
        return default


@dataclass(frozen=True)
class Config:
    """Immutable snapshot of runtime configuration."""

    log_level: str
    log_file: Path
    log_format: str
    mcp_transport: str
    mcp_host: str
    mcp_port: int
    default_tool_timeout: int
    max_output_size: int
    coredumpctl_path: str
    gdb_path: str
    temp_dir: Path
    core_pattern_file: Path
    list_format: str

    @classmethod
    def from_env(cls) -> "Config":
        """Build a configuration object from environment variables."""
        log_level = os.getenv("LOG_LEVEL", "INFO").upper()
        log_file = Path(os.getenv("LOG_FILE", "/tmp/coredump_mcp/app.log")).expanduser()
        log_format = os.getenv("LOG_FORMAT", "human").lower()
        mcp_transport = os.getenv("MCP_TRANSPORT", "stdio").lower()
        mcp_host = os.getenv("MCP_HOST", "127.0.0.1")
        mcp_port = _parse_int(os.getenv("MCP_PORT"), default=8000)
        default_tool_timeout = _parse_int(
            os.getenv("DEFAULT_TOOL_TIMEOUT"),
            default=300,
        )
        max_output_size = _parse_int(
            os.getenv("COREDUMP_MAX_OUTPUT_SIZE"),
            default=10_000_000,
        )
        coredumpctl_path = os.getenv("COREDUMPCTL_PATH", "coredumpctl")
        gdb_path = os.getenv("GDB_PATH", "gdb")
        temp_dir = Path(
            os.getenv("COREDUMP_TEMP_DIR", tempfile.gettempdir())
        ).expanduser()
        core_pattern_file = Path(
            os.getenv("COREDUMP_CORE_PATTERN_FILE", "/proc/sys/kernel/core_pattern")
        )
        list_format = os.getenv("COREDUMP_LIST_FORMAT", "json").lower()
        if list_format not in LIST_FORMATS:
            list_format = "json"

        return cls(
            log_level=log_level,
            log_file=log_file,
            log_format=log_format,
            mcp_transport=mcp_transport,
            mcp_host=mcp_host,
            mcp_port=mcp_port,
            default_tool_timeout=default_tool_timeout,
            max_output_size=max_output_size,
            coredumpctl_path=coredumpctl_path,
            gdb_path=gdb_path,
            temp_dir=temp_dir,
            core_pattern_file=core_pattern_file,
            list_format=list_format,
        )


_CONFIG: Config | None = None


def get_config() -> Config:
    """Return the cached Config instance, loading it on first access."""
    global _CONFIG
    if _CONFIG is None:
        _CONFIG = Config.from_env()
    return _CONFIG


def reset_config() -> Config:
    """Reload configuration from the current environment (primarily for tests)."""
    global _CONFIG
    _CONFIG = Config.from_env()
    return _CONFIG
