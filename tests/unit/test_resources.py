"""Unit tests for the coredump:// resources."""

from unittest.mock import Mock

import pytest
from fastmcp import Client

from coredump_mcp import resources
from coredump_mcp.core import json_utils as json
from coredump_mcp.core.exceptions import NotFoundError
from coredump_mcp.core.metrics import metrics_collector
from coredump_mcp.server import create_server


@pytest.fixture
def registered(registry):
    """Register resources on a stand-in server; map URI template -> (fn, kwargs)."""
    captured = {}

    def resource(uri, **kwargs):
        def decorator(fn):
            captured[uri] = (fn, kwargs)
            return fn

        return decorator

    mcp = Mock()
    mcp.resource = resource
    resources.register_resources(mcp, registry)
    return captured


def test_registered_uris_and_mime_types(registered):
    assert {uri: kwargs["mime_type"] for uri, (_, kwargs) in registered.items()} == {
        "coredump://dumps": "application/json",
        "coredump://metrics": "application/json",
        "coredump://{coredump_id}": "application/json",
        "coredump://{coredump_id}/stacktrace": "text/plain",
    }


def test_coredump_uri_encodes_spaces_and_colons():
    uri = resources.coredump_uri("Sat 2023-06-17 01:50:45 JST-2465", "stacktrace")
    assert uri == "coredump://Sat%202023-06-17%2001%3A50%3A45%20JST-2465/stacktrace"
    assert resources.decode_coredump_id(uri[len("coredump://") : -len("/stacktrace")]) == (
        "Sat 2023-06-17 01:50:45 JST-2465"
    )


@pytest.mark.asyncio
async def test_dumps_listing(registered, registry):
    fn, _ = registered["coredump://dumps"]

    entries = json.loads(await fn())

    assert len(entries) == 2
    first_id = next(iter(registry.records))
    assert entries[0]["uri"] == resources.coredump_uri(first_id)
    assert entries[0]["stacktraceUri"].endswith("/stacktrace")
    assert entries[0]["name"] == "Coredump 2465 (/usr/bin/cuteime)"
    assert "PID 2465" in entries[0]["description"]


@pytest.mark.asyncio
async def test_detail_accepts_percent_encoded_id(registered, registry, runner, samples):
    runner.on("coredumpctl", "info", output=samples["info"])
    dumps = await registry.refresh()
    encoded = resources.coredump_uri(dumps[0].id)[len("coredump://") :]
    fn, _ = registered["coredump://{coredump_id}"]

    detail = json.loads(await fn(coredump_id=encoded))

    assert detail["id"] == dumps[0].id
    assert detail["hostname"] == "workstation"


@pytest.mark.asyncio
async def test_stacktrace_resource(registered, registry, runner, dump_writer, samples):
    runner.on("coredumpctl", "dump", action=dump_writer)
    runner.on("gdb", output=samples["gdb"])
    dumps = await registry.refresh()
    fn, _ = registered["coredump://{coredump_id}/stacktrace"]

    text = await fn(coredump_id=resources.coredump_uri(dumps[0].id)[len("coredump://") :])

    assert text.splitlines()[0] == f"Stack trace for coredump {dumps[0].id}"
    assert "Thread 1:" in text


@pytest.mark.asyncio
async def test_unknown_id_propagates_not_found(registered):
    fn, _ = registered["coredump://{coredump_id}"]

    with pytest.raises(NotFoundError):
        await fn(coredump_id="nope")


def test_metrics_resource(registered):
    metrics_collector.reset()
    metrics_collector.record_tool_execution("list_coredumps", 0.5)
    fn, _ = registered["coredump://metrics"]

    payload = json.loads(fn())

    assert payload["tools"]["list_coredumps"]["calls"] == 1
    metrics_collector.reset()


@pytest.mark.asyncio
async def test_percent_encoded_ids_resolve_through_fastmcp(registry, runner, samples, dump_writer):
    runner.on("coredumpctl", "info", output=samples["info"])
    runner.on("coredumpctl", "dump", action=dump_writer)
    runner.on("gdb", output=samples["gdb"])
    dumps = await registry.refresh()

    async with Client(create_server(registry)) as client:
        detail = await client.read_resource(resources.coredump_uri(dumps[0].id))
        trace = await client.read_resource(resources.coredump_uri(dumps[0].id, "stacktrace"))

    assert json.loads(detail[0].text)["hostname"] == "workstation"
    assert trace[0].text.startswith(f"Stack trace for coredump {dumps[0].id}")
