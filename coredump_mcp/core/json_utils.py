"""
JSON helpers backed by orjson.

Exposes ``loads``/``dumps`` with the standard library's call shape so callers
can ``from coredump_mcp.core import json_utils as json``. Decode failures are
re-raised as ``json.JSONDecodeError`` so error handling stays uniform.
"""

import json as _stdlib_json
from typing import Any

import orjson

JSONDecodeError = _stdlib_json.JSONDecodeError


def loads(s: str | bytes) -> Any:
    """Parse JSON, raising the stdlib JSONDecodeError on malformed input."""
    if isinstance(s, str):
        s = s.encode("utf-8")
    try:
        return orjson.loads(s)
    except orjson.JSONDecodeError as e:
        raise JSONDecodeError(str(e), s.decode("utf-8", errors="replace"), 0) from e


def dumps(obj: Any, indent: int | None = None, default: Any = None) -> str:
    """
    Serialize object to JSON.

    orjson only supports 2-space indentation, so any non-None ``indent``
    pretty-prints with two spaces.

    Args:
        obj: Python object to serialize
        indent: If provided, pretty-print the output
        default: Callable for objects orjson cannot serialize natively

    Returns:
        JSON string
    """
    option = orjson.OPT_INDENT_2 if indent is not None else 0
    return orjson.dumps(obj, default=default, option=option).decode("utf-8")


__all__ = ["loads", "dumps", "JSONDecodeError"]
