"""gdb batch invocation helpers and backtrace parsing."""

import re
from typing import List, Optional

from coredump_mcp.core.models import StackFrame, StackTrace

GDB_COMMANDS = (
    "set pagination off",
    "thread apply all bt full",
    "quit",
)

_THREAD_RE = re.compile(r"^Thread (\d+) \(.*\):")

# #0  0x00007f9b7c27d6b0 in __GI_raise (sig=sig@entry=6) at ../sysdeps/unix/sysv/linux/raise.c:50
# #1  main () at crash.c:12
# #2  0x00007f... in __libc_start_main () from /lib64/libc.so.6
# #3  0x00005555... in std::vector<int, std::allocator<int> >::at (this=0x7ffe, __n=5) at stl_vector.h:1142
#
# Function names may contain spaces (templates) and argument values may
# contain parentheses, so the argument list runs from the first " (" after
# the name to the last ")" before the optional location suffix.
_FRAME_RE = re.compile(
    r"^#(?P<index>\d+)\s+"
    r"(?:(?P<address>0x[0-9a-fA-F]+)\s+in\s+)?"
    r"(?P<function>\S.*?)"
    r"(?:\s+\((?P<args>.*)\))?"
    r"(?:\s+at\s+(?P<file>\S+):(?P<line>\d+))?"
    r"(?:\s+from\s+\S+)?"
    r"\s*$"
)


def gdb_script() -> str:
    return "\n".join(GDB_COMMANDS) + "\n"


def build_gdb_command(gdb_path: str, script_path: str, executable: str, core_path: str) -> List[str]:
    """Quiet, batch, no-init gdb run of ``script_path`` against an executable and core."""
    return [gdb_path, "-q", "-batch", "-x", script_path, "--nx", executable, core_path]


def parse_backtrace(output: str, signal: Optional[str] = None) -> StackTrace:
    """
    Parse ``thread apply all bt full`` output.

    Thread headers update the current thread id; frame lines append frames
    tagged with that thread. Local-variable lines are ignored.
    """
    frames = []
    current_thread: Optional[str] = None

    for line in output.splitlines():
        thread_match = _THREAD_RE.match(line)
        if thread_match:
            current_thread = thread_match.group(1)
            continue

        frame_match = _FRAME_RE.match(line)
        if not frame_match:
            continue
        line_number = frame_match.group("line")
        frames.append(
            StackFrame(
                index=int(frame_match.group("index")),
                address=frame_match.group("address"),
                function=frame_match.group("function"),
                arguments=frame_match.group("args"),
                source_location=frame_match.group("file"),
                line_number=int(line_number) if line_number else None,
                thread_id=current_thread,
            )
        )

    return StackTrace(frames=frames, thread_id=current_thread, signal=signal)


def format_frame(frame: StackFrame) -> str:
    parts = [f"#{frame.index}"]
    if frame.address:
        parts.append(frame.address)
    if frame.function:
        parts.append(f"in {frame.function}")
    if frame.arguments is not None:
        parts.append(f"({frame.arguments})")
    if frame.source_location:
        location = f"at {frame.source_location}"
        if frame.line_number is not None:
            location += f":{frame.line_number}"
        parts.append(location)
    return " ".join(parts)


def format_stack_trace(coredump_id: str, trace: StackTrace) -> str:
    """Render a stack trace as readable text for tool and resource output."""
    lines = [
        f"Stack trace for coredump {coredump_id}",
        f"Signal: {trace.signal}",
        "",
    ]
    current_thread = None
    for frame in trace.frames:
        if frame.thread_id and frame.thread_id != current_thread:
            current_thread = frame.thread_id
            lines.append(f"Thread {current_thread}:")
        lines.append(format_frame(frame))
    return "\n".join(lines) + "\n"
