"""
Unit tests for server wiring and main() transport selection.
"""

import sys
import types

from coredump_mcp import server
from coredump_mcp.core import config as config_module
from coredump_mcp.core.config import reset_config


def test_server_main_stdio(monkeypatch):
    monkeypatch.setattr(config_module, "_CONFIG", None)
    monkeypatch.setenv("MCP_TRANSPORT", "stdio")
    reset_config()

    called = {}

    def _run(transport: str = "stdio"):
        called["transport"] = transport

    monkeypatch.setattr(server.mcp, "run", _run, raising=False)

    server.main()

    assert called["transport"] == "stdio"


def test_server_main_http(monkeypatch):
    monkeypatch.setattr(config_module, "_CONFIG", None)
    monkeypatch.setenv("MCP_TRANSPORT", "http")
    monkeypatch.setenv("MCP_HOST", "0.0.0.0")
    monkeypatch.setenv("MCP_PORT", "9100")
    reset_config()

    app = object()
    called = {}

    def _run(application, host, port):
        called.update(app=application, host=host, port=port)

    monkeypatch.setitem(sys.modules, "uvicorn", types.SimpleNamespace(run=_run))
    monkeypatch.setattr(server.mcp, "http_app", lambda: app, raising=False)

    server.main()

    assert called == {"app": app, "host": "0.0.0.0", "port": 9100}


def test_check_dependencies(monkeypatch):
    monkeypatch.setattr(config_module, "_CONFIG", None)
    monkeypatch.setenv("GDB_PATH", "definitely-not-installed-gdb")
    monkeypatch.setattr(
        server.shutil,
        "which",
        lambda name: "/usr/bin/coredumpctl" if name == "coredumpctl" else None,
    )

    assert server.check_dependencies() == {"coredumpctl": True, "gdb": False}


def test_create_server_registers_everything(monkeypatch, registry):
    calls = {}

    class RecordingServer:
        def __init__(self, name, lifespan):
            calls["name"] = name
            self.tools = []
            self.resources = []

        def tool(self, fn):
            self.tools.append(fn.__name__)
            return fn

        def resource(self, uri, **kwargs):
            self.resources.append(uri)
            return lambda fn: fn

    monkeypatch.setattr(server, "FastMCP", RecordingServer)

    built = server.create_server(registry)

    assert calls["name"] == "coredump_mcp"
    assert "get_stacktrace" in built.tools
    assert "coredump://{coredump_id}/stacktrace" in built.resources
