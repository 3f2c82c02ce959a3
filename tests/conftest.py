"""Pytest configuration and shared fixtures with explicit dependency injection."""

import subprocess
from pathlib import Path

import pytest

from coredump_mcp.core.config import Config
from coredump_mcp.core.registry import DumpRegistry


SAMPLE_JSON_LISTING = """[
        {
                "time" : 1686934245000000,
                "pid" : 2465,
                "uid" : 1000,
                "gid" : 100,
                "sig" : 6,
                "corefile" : "present",
                "exe" : "/usr/bin/cuteime",
                "size" : 1572864
        }
        {
                "time" : 1686934300000000,
                "pid" : 3001,
                "uid" : 1000,
                "gid" : 100,
                "sig" : 11,
                "corefile" : "missing",
                "exe" : "/usr/bin/crasher",
                "size" : null
        }
]
"""

SAMPLE_TEXT_LISTING = """\
Sat 2023-06-17 01:50:45 JST    2465 1000  100 SIGABRT present  /usr/bin/cuteime 1.5M
Sat 2023-06-17 02:10:01 JST    3001 1000  100 SIGSEGV missing  /usr/bin/crasher -
"""

SAMPLE_INFO = """\
           PID: 2465 (cuteime)
           UID: 1000 (user)
           GID: 100 (users)
        Signal: 6 (ABRT)
     Timestamp: Sat 2023-06-17 01:50:45 JST (1 day ago)
  Command Line: /usr/bin/cuteime --mode=a:b
    Executable: /usr/bin/cuteime
      Hostname: workstation
       Storage: /var/lib/systemd/coredump/core.cuteime.1000.zst (present)
"""

SAMPLE_GDB_OUTPUT = """\
[New LWP 2465]
Core was generated by `/usr/bin/cuteime'.
Program terminated with signal SIGABRT, Aborted.

Thread 1 (Thread 0x7f9b7c1ff740 (LWP 2465)):
#0  0x00007f9b7c27d6b0 in __GI_raise (sig=sig@entry=6) at ../sysdeps/unix/sysv/linux/raise.c:50
        set = {__val = {0}}
        pid = <optimized out>
#1  0x00007f9b7c268859 in __GI_abort () at abort.c:79
No locals.
#2  main (argc=1, argv=0x7ffd5b1c) at cuteime.c:42
        state = 0
"""


class FakeRunner:
    """Stand-in for execute_subprocess_async that answers by command prefix."""

    def __init__(self):
        self.calls = []
        self._handlers = []

    def on(self, *prefix, output="", error=None, action=None):
        """Answer commands starting with ``prefix``; later registrations win."""
        self._handlers.insert(0, (tuple(prefix), output, error, action))
        return self

    def fail(self, *prefix, stderr="", returncode=1):
        error = subprocess.CalledProcessError(
            returncode, list(prefix), output="", stderr=stderr
        )
        return self.on(*prefix, error=error)

    def count(self, *prefix):
        return sum(1 for cmd in self.calls if tuple(cmd[: len(prefix)]) == prefix)

    async def __call__(self, cmd, max_output_size=None, timeout=None):
        self.calls.append(list(cmd))
        for prefix, output, error, action in self._handlers:
            if tuple(cmd[: len(prefix)]) == prefix:
                if action is not None:
                    action(list(cmd))
                if error is not None:
                    raise error
                text = output(cmd) if callable(output) else output
                return text, len(text.encode())
        raise AssertionError(f"Unexpected command: {cmd}")


def write_dump_file(cmd):
    """Action for ``coredumpctl dump <pid> -o <path>`` that creates the file."""
    destination = Path(cmd[cmd.index("-o") + 1])
    destination.write_bytes(b"\x7fELF core")


@pytest.fixture
def config(tmp_path) -> Config:
    """Provide a Config instance isolated inside tmp_path."""
    pattern_file = tmp_path / "core_pattern"
    pattern_file.write_text("|/usr/lib/systemd/systemd-coredump %P %u %g %s %t %c %h\n")
    return Config(
        log_level="INFO",
        log_file=tmp_path / "coredump_mcp.log",
        log_format="human",
        mcp_transport="stdio",
        mcp_host="127.0.0.1",
        mcp_port=8000,
        default_tool_timeout=60,
        max_output_size=1_000_000,
        coredumpctl_path="coredumpctl",
        gdb_path="gdb",
        temp_dir=tmp_path / "tmp",
        core_pattern_file=pattern_file,
        list_format="json",
    )


@pytest.fixture
def runner() -> FakeRunner:
    """A FakeRunner preloaded with a two-dump JSON listing."""
    return FakeRunner().on("coredumpctl", "list", output=SAMPLE_JSON_LISTING)


@pytest.fixture
def registry(config, runner) -> DumpRegistry:
    """A DumpRegistry wired to the fake runner."""
    return DumpRegistry(config, runner=runner)


@pytest.fixture
def make_runner():
    """Factory for empty FakeRunner instances."""
    return FakeRunner


@pytest.fixture
def dump_writer():
    """Runner action that materializes the file named by ``-o``."""
    return write_dump_file


@pytest.fixture
def samples():
    """Canned coredumpctl and gdb outputs."""
    return {
        "json": SAMPLE_JSON_LISTING,
        "text": SAMPLE_TEXT_LISTING,
        "info": SAMPLE_INFO,
        "gdb": SAMPLE_GDB_OUTPUT,
    }
