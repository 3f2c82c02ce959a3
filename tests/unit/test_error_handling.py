"""Unit tests for handle_tool_errors."""

import pytest

from coredump_mcp.core.error_handling import handle_tool_errors
from coredump_mcp.core.exceptions import (
    ExecutionTimeoutError,
    ListingParseError,
    NotFoundError,
    ToolNotFoundError,
    ValidationError,
)
from coredump_mcp.core.result import success


def _raising(exc):
    @handle_tool_errors
    def tool():
        raise exc

    return tool


def test_success_passes_through():
    @handle_tool_errors
    def tool():
        return success("ok")

    assert tool().data == "ok"


def test_validation_error_maps_to_invalid_params():
    result = _raising(ValidationError("coredump_id is required", details={"parameter": "coredump_id"}))()

    assert result.status == "error"
    assert result.error_code == "INVALID_PARAMS"
    assert result.message == "coredump_id is required"
    assert result.details == {"parameter": "coredump_id"}


def test_not_found_maps_with_hint():
    result = _raising(NotFoundError("abc-1"))()

    assert result.error_code == "NOT_FOUND"
    assert "list_coredumps" in result.hint
    assert result.details == {"coredump_id": "abc-1"}


def test_tool_not_found():
    result = _raising(ToolNotFoundError("coredumpctl"))()
    assert result.error_code == "TOOL_NOT_FOUND"
    assert result.details == {"tool_name": "coredumpctl"}


def test_timeout():
    result = _raising(ExecutionTimeoutError(5))()
    assert result.error_code == "TIMEOUT"
    assert result.message == "Command timed out after 5 seconds"


def test_other_coredump_errors_keep_code():
    result = _raising(ListingParseError("Failed to parse coredumpctl JSON output"))()
    assert result.error_code == "INTERNAL_ERROR"
    assert result.message == "Failed to parse coredumpctl JSON output"
    assert result.details == {"code": "CDMCP-E006"}


def test_unexpected_exception():
    @handle_tool_errors
    def get_stacktrace():
        raise KeyError("frames")

    result = get_stacktrace()

    assert result.error_code == "INTERNAL_ERROR"
    assert result.message.startswith("get_stacktrace failed:")
    assert result.details == {"exception_type": "KeyError"}


@pytest.mark.asyncio
async def test_async_tools_are_wrapped():
    @handle_tool_errors
    async def remove_coredump(coredump_id):
        raise NotFoundError(coredump_id)

    result = await remove_coredump("gone")

    assert remove_coredump.__name__ == "remove_coredump"
    assert result.error_code == "NOT_FOUND"
