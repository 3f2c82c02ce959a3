"""
Safe subprocess execution with streaming and output limits.

Every external tool (coredumpctl, gdb) is invoked through
``execute_subprocess_async``, which provides:
- Streaming output to prevent OOM on large backtraces
- Configurable output size limits
- Optional timeout handling
- Non-zero exit codes surfaced as CalledProcessError with stderr attached
"""

import asyncio
import subprocess

from coredump_mcp.core.exceptions import ExecutionTimeoutError, ToolNotFoundError
from coredump_mcp.core.logging_config import get_logger

logger = get_logger(__name__)

CHUNK_SIZE = 8192
REAP_TIMEOUT = 5


async def execute_subprocess_async(
    cmd: list[str],
    max_output_size: int = 10_000_000,  # 10 MB default
    timeout: int = 300,  # 5 minutes default, 0 disables
    encoding: str = "utf-8",
    errors: str = "replace",
) -> tuple[str, int]:
    """
    Execute a subprocess command asynchronously with streaming output and size limits.

    Args:
        cmd: Command and arguments as a list (e.g., ["coredumpctl", "info", "2465"])
        max_output_size: Maximum output size in bytes (default: 10MB)
        timeout: Maximum execution time in seconds; 0 waits indefinitely
        encoding: Text encoding for output (default: "utf-8")
        errors: Error handling for encoding (default: "replace")

    Returns:
        Tuple of (output_text, bytes_read)
        - output_text: The captured stdout (truncated if limit exceeded)
        - bytes_read: Total bytes read (may exceed max_output_size if truncated)

    Raises:
        ToolNotFoundError: If the command executable is not found
        ExecutionTimeoutError: If the command exceeds the timeout
        subprocess.CalledProcessError: If the command returns non-zero exit code
    """
    logger.debug(f"Executing: {' '.join(cmd)}")
    try:
        process = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except FileNotFoundError:
        tool_name = cmd[0] if cmd else "unknown"
        raise ToolNotFoundError(tool_name)

    output_chunks = []
    bytes_read = 0
    stderr_chunks = []
    stderr_read = 0

    async def read_stream():
        """Read stdout in chunks until EOF, keeping at most max_output_size bytes."""
        nonlocal bytes_read
        while True:
            chunk = await process.stdout.read(CHUNK_SIZE)
            if not chunk:
                break
            bytes_read += len(chunk)
            if bytes_read <= max_output_size:
                output_chunks.append(chunk.decode(encoding, errors=errors))

    async def read_stderr():
        """Drain stderr alongside stdout so a chatty child never blocks on a full pipe."""
        nonlocal stderr_read
        while True:
            chunk = await process.stderr.read(CHUNK_SIZE)
            if not chunk:
                break
            stderr_read += len(chunk)
            if stderr_read <= max_output_size:
                stderr_chunks.append(chunk)

    async def communicate():
        await asyncio.gather(read_stream(), read_stderr())
        await process.wait()

    try:
        if timeout and timeout > 0:
            await asyncio.wait_for(communicate(), timeout=timeout)
        else:
            await communicate()
    except asyncio.TimeoutError:
        logger.warning(f"Command timed out after {timeout}s: {' '.join(cmd)}")
        raise ExecutionTimeoutError(timeout)
    finally:
        # Reap the child so it never lingers as a zombie
        if process.returncode is None:
            try:
                process.kill()
                await asyncio.wait_for(process.wait(), timeout=REAP_TIMEOUT)
            except ProcessLookupError:
                pass
            except asyncio.TimeoutError:
                logger.warning(f"Killed process did not exit within {REAP_TIMEOUT}s: {cmd[0]}")

    stderr_text = b"".join(stderr_chunks).decode(encoding, errors=errors)

    output_text = "".join(output_chunks)
    if bytes_read > max_output_size:
        output_text += (
            f"\n\n[WARNING: Output truncated at {max_output_size} bytes. "
            f"Total output size: {bytes_read} bytes]"
        )

    if process.returncode != 0:
        raise subprocess.CalledProcessError(
            process.returncode, cmd, output=output_text, stderr=stderr_text
        )

    return output_text, bytes_read
