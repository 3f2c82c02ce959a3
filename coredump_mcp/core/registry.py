"""
Dump registry: the in-memory view of the system's coredumps.

A ``DumpRegistry`` owns the mapping from coredump id to ``DumpRecord``
built by the last ``coredumpctl list`` run and fronts every operation that
needs a record (detail, extraction, removal, stack traces). One instance is
created by the server and handed to the tool and resource handlers; tests
build their own with a fake command runner.
"""

import resource
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Awaitable, Callable, Dict, List, Optional, Tuple

import aiofiles

from coredump_mcp.core.config import Config, get_config
from coredump_mcp.core.exceptions import NotFoundError, ToolExecutionError
from coredump_mcp.core.execution import execute_subprocess_async
from coredump_mcp.core.gdb import build_gdb_command, gdb_script, parse_backtrace
from coredump_mcp.core.logging_config import get_logger
from coredump_mcp.core.models import CoredumpConfig, DumpRecord, StackTrace
from coredump_mcp.core.parser import parse_info_fields, parse_listing_json, parse_listing_text

logger = get_logger(__name__)

CommandRunner = Callable[..., Awaitable[Tuple[str, int]]]

NO_COREDUMPS_MARKER = "No coredumps found"
SYSTEMD_COREDUMP = "systemd-coredump"
ULIMIT_BLOCK_SIZE = 1024


def _error_text(exc: subprocess.CalledProcessError) -> str:
    stderr = (exc.stderr or "").strip()
    return stderr or str(exc)


def _format_core_limit(soft_limit: int) -> str:
    """Report RLIMIT_CORE the way ``ulimit -c`` does (1024-byte blocks)."""
    if soft_limit == resource.RLIM_INFINITY:
        return "unlimited"
    return str(soft_limit // ULIMIT_BLOCK_SIZE)


class DumpRegistry:
    """Cache of coredump records plus the operations that act on them."""

    def __init__(self, config: Optional[Config] = None, runner: Optional[CommandRunner] = None):
        self._config = config or get_config()
        self._runner = runner or execute_subprocess_async
        self._records: Dict[str, DumpRecord] = {}

    @property
    def records(self) -> Dict[str, DumpRecord]:
        return dict(self._records)

    async def _run(self, cmd: List[str]) -> str:
        output, _ = await self._runner(
            cmd,
            max_output_size=self._config.max_output_size,
            timeout=self._config.default_tool_timeout,
        )
        return output

    def _coredumpctl(self, *args: str) -> List[str]:
        return [self._config.coredumpctl_path, *args]

    # ------------------------------------------------------------------
    # Listing and lookup
    # ------------------------------------------------------------------

    async def refresh(self, only_present: bool = False) -> List[DumpRecord]:
        """
        Re-run ``coredumpctl list`` and replace the whole cache with its result.

        Records sharing an id collapse into one entry. An empty system yields
        an empty list.
        """
        if self._config.list_format == "text":
            cmd = self._coredumpctl("list", "--no-pager", "--no-legend")
        else:
            cmd = self._coredumpctl("list", "--no-pager", "--json=pretty")

        try:
            output = await self._run(cmd)
        except subprocess.CalledProcessError as exc:
            if NO_COREDUMPS_MARKER in (exc.stderr or "") or NO_COREDUMPS_MARKER in (exc.output or ""):
                output = ""
            else:
                raise ToolExecutionError(f"Failed to list coredumps: {_error_text(exc)}") from exc

        if self._config.list_format == "text":
            parsed = parse_listing_text(output, only_present=only_present)
        else:
            parsed = parse_listing_json(output, only_present=only_present)

        records: Dict[str, DumpRecord] = {}
        for record in parsed:
            records.setdefault(record.id, record)
        self._records = records

        logger.info(f"Loaded {len(records)} coredump(s)")
        return list(records.values())

    async def _refresh_and_retry(self, coredump_id: str) -> DumpRecord:
        """Recovery step for a cache miss: one refresh, one more lookup."""
        logger.debug(f"Coredump {coredump_id!r} not cached; refreshing listing")
        await self.refresh()
        record = self._records.get(coredump_id)
        if record is None:
            raise NotFoundError(coredump_id)
        return record

    async def lookup(self, coredump_id: str) -> DumpRecord:
        record = self._records.get(coredump_id)
        if record is not None:
            return record
        return await self._refresh_and_retry(coredump_id)

    # ------------------------------------------------------------------
    # Per-record operations
    # ------------------------------------------------------------------

    async def get_detail(self, coredump_id: str) -> DumpRecord:
        """Resolve a record and fill in its command line and hostname."""
        record = await self.lookup(coredump_id)
        try:
            output = await self._run(self._coredumpctl("info", record.pid))
        except subprocess.CalledProcessError as exc:
            raise ToolExecutionError(f"Failed to get coredump info: {_error_text(exc)}") from exc

        for attribute, value in parse_info_fields(output).items():
            setattr(record, attribute, value)
        return record

    async def _dump_to(self, record: DumpRecord, destination: str) -> None:
        try:
            await self._run(self._coredumpctl("dump", record.pid, "-o", destination))
        except subprocess.CalledProcessError as exc:
            raise ToolExecutionError(f"Failed to extract coredump: {_error_text(exc)}") from exc

    async def extract(self, coredump_id: str, destination: str) -> str:
        """Write the dump to ``destination`` and remember where it went."""
        record = await self.lookup(coredump_id)
        await self._dump_to(record, destination)
        record.extracted_path = destination
        logger.info(f"Extracted coredump {coredump_id} to {destination}")
        return destination

    async def remove(self, coredump_id: str) -> bool:
        record = await self.lookup(coredump_id)
        try:
            await self._run(self._coredumpctl("delete", record.pid))
        except subprocess.CalledProcessError as exc:
            raise ToolExecutionError(f"Failed to remove coredump: {_error_text(exc)}") from exc
        self._records.pop(coredump_id, None)
        logger.info(f"Removed coredump {coredump_id}")
        return True

    async def get_stack_trace(self, coredump_id: str) -> StackTrace:
        """
        Run gdb over the dump and parse the backtrace of every thread.

        A dump that was not extracted earlier is written into a private
        temporary directory, which is removed together with the gdb command
        script whether or not gdb succeeds.
        """
        record = await self.lookup(coredump_id)

        self._config.temp_dir.mkdir(parents=True, exist_ok=True)
        work_dir = Path(
            tempfile.mkdtemp(prefix=f"coredump-{record.pid}-", dir=self._config.temp_dir)
        )
        try:
            if record.extracted_path and Path(record.extracted_path).is_file():
                core_path = record.extracted_path
            else:
                core_path = str(work_dir / "core.dump")
                await self._dump_to(record, core_path)

            script_path = work_dir / "gdb-commands.txt"
            async with aiofiles.open(script_path, "w") as script:
                await script.write(gdb_script())

            cmd = build_gdb_command(
                self._config.gdb_path, str(script_path), record.executable_path, core_path
            )
            try:
                output = await self._run(cmd)
            except subprocess.CalledProcessError as exc:
                raise ToolExecutionError(f"Failed to get stack trace: {_error_text(exc)}") from exc
        finally:
            shutil.rmtree(work_dir, ignore_errors=True)

        return parse_backtrace(output, record.signal)

    # ------------------------------------------------------------------
    # Dump generation settings
    # ------------------------------------------------------------------

    async def get_config(self) -> CoredumpConfig:
        """Read the kernel core pattern and this process's core size limit."""
        try:
            async with aiofiles.open(self._config.core_pattern_file) as pattern_file:
                core_pattern = (await pattern_file.read()).strip()
            soft_limit, _ = resource.getrlimit(resource.RLIMIT_CORE)
        except (OSError, ValueError) as exc:
            raise ToolExecutionError(f"Failed to get core dump configuration: {exc}") from exc

        core_size_limit = _format_core_limit(soft_limit)
        is_pipe = core_pattern.startswith("|")
        systemd_handled = is_pipe and SYSTEMD_COREDUMP in core_pattern
        enabled = core_size_limit != "0" and (systemd_handled or not is_pipe)

        return CoredumpConfig(
            enabled=enabled,
            core_pattern=core_pattern,
            core_size_limit=core_size_limit,
            systemd_handled=systemd_handled,
        )

    async def set_config(self, enabled: bool) -> bool:
        """
        Raise the soft core limit to the hard limit, or drop it to zero.

        Only this process and the processes it spawns are affected; the
        system-wide defaults are left alone.
        """
        action = "enable" if enabled else "disable"
        try:
            _, hard_limit = resource.getrlimit(resource.RLIMIT_CORE)
            soft_limit = hard_limit if enabled else 0
            resource.setrlimit(resource.RLIMIT_CORE, (soft_limit, hard_limit))
        except (OSError, ValueError) as exc:
            raise ToolExecutionError(f"Failed to {action} core dumps: {exc}") from exc

        current = await self.get_config()
        return current.enabled == enabled
