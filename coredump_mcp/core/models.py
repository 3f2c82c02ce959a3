"""Pydantic models for coredump records, stack traces and dump configuration."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class _CamelModel(BaseModel):
    """Base model that serializes with the camelCase names clients expect."""

    model_config = ConfigDict(populate_by_name=True)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class DumpRecord(_CamelModel):
    """One crash dump as reported by ``coredumpctl list``."""

    id: str
    pid: str
    uid: str
    gid: str
    signal: str
    timestamp: str
    executable_path: str = Field(alias="executablePath")
    command_line: Optional[str] = Field(default=None, alias="commandLine")
    hostname: Optional[str] = None
    extracted_path: Optional[str] = Field(default=None, alias="extractedPath")

    @staticmethod
    def make_id(timestamp: str, pid: str) -> str:
        """Derive the record id; equal timestamp and pid mean the same dump."""
        return f"{timestamp}-{pid}"

    @classmethod
    def create(
        cls,
        *,
        pid: str,
        uid: str,
        gid: str,
        signal: str,
        timestamp: str,
        executable_path: str,
    ) -> "DumpRecord":
        return cls(
            id=cls.make_id(timestamp, pid),
            pid=pid,
            uid=uid,
            gid=gid,
            signal=signal,
            timestamp=timestamp,
            executable_path=executable_path,
        )


class StackFrame(_CamelModel):
    """A single call-stack level parsed from a gdb backtrace."""

    index: int
    address: Optional[str] = None
    function: Optional[str] = None
    arguments: Optional[str] = Field(default=None, alias="argumentsText")
    source_location: Optional[str] = Field(default=None, alias="sourceLocation")
    line_number: Optional[int] = Field(default=None, alias="lineNumber")
    thread_id: Optional[str] = Field(default=None, alias="threadId")


class StackTrace(_CamelModel):
    """Backtrace of a dump. Computed on demand and never cached."""

    frames: List[StackFrame] = Field(default_factory=list)
    thread_id: Optional[str] = Field(default=None, alias="threadId")
    signal: Optional[str] = None


class CoredumpConfig(_CamelModel):
    """Kernel core pattern and core size limit of the current process."""

    enabled: bool
    core_pattern: str = Field(alias="corePattern")
    core_size_limit: str = Field(alias="coreSizeLimit")
    systemd_handled: bool = Field(alias="systemdHandled")
