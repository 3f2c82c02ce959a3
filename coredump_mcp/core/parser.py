"""
Parsers for ``coredumpctl`` output.

``coredumpctl list`` is consumed in two shapes:

* the legend-stripped table (``--no-legend``), whose TIME and EXE columns
  may both contain spaces, so rows are anchored on the COREFILE column;
* the ``--json`` output, which some coredumpctl releases emit without
  commas between objects (and, in degraded cases, without quoted keys).

Malformed rows and objects are dropped, never raised. Only a listing that
cannot be decoded at all raises ``ListingParseError``.
"""

import re
from datetime import datetime
from typing import Any, Dict, List, Optional

from coredump_mcp.core import json_utils as json
from coredump_mcp.core.exceptions import ListingParseError
from coredump_mcp.core.logging_config import get_logger
from coredump_mcp.core.models import DumpRecord

logger = get_logger(__name__)

MIN_TABLE_TOKENS = 7
PRESENT = "present"

# Values coredumpctl prints in the COREFILE column
COREFILE_STATES = frozenset(
    {"present", "missing", "none", "journal", "error", "truncated", "inaccessible"}
)

_SIZE_TOKEN_RE = re.compile(r"^(?:-|n/a|\d+(?:\.\d+)?[BKMGTPE]?)$")

SIGNAL_NAMES = {
    1: "SIGHUP",
    2: "SIGINT",
    3: "SIGQUIT",
    4: "SIGILL",
    5: "SIGTRAP",
    6: "SIGABRT",
    7: "SIGBUS",
    8: "SIGFPE",
    9: "SIGKILL",
    11: "SIGSEGV",
    13: "SIGPIPE",
    15: "SIGTERM",
    24: "SIGXCPU",
    25: "SIGXFSZ",
    31: "SIGSYS",
}

TIMESTAMP_FORMAT = "%a %Y-%m-%d %H:%M:%S %Z"

# Bulk repair patterns
_ADJACENT_OBJECTS_RE = re.compile(r"\}\s*\{")
_ARRAY_END_RE = re.compile(r"\}\s*\]")
_ARRAY_START_RE = re.compile(r"\[\s*\{")

# Per-object fallback patterns
_FLAT_OBJECT_RE = re.compile(r"\{[^{}]*\}")
_WHITESPACE_RE = re.compile(r"\s+")
# String literals are matched first so keys are only quoted outside them
_BARE_KEY_RE = re.compile(
    r'(?P<string>"(?:\\.|[^"\\])*")'
    r"|(?P<lead>[{,]\s*)(?P<key>[A-Za-z_][A-Za-z0-9_]*)\s*:"
)


# ============================================================================
# Table mode
# ============================================================================


def _parse_table_line(line: str, only_present: bool) -> Optional[DumpRecord]:
    parts = line.split()
    if len(parts) < MIN_TABLE_TOKENS:
        return None
    if parts[0] == "TIME":
        return None

    status_index = next(
        (i for i, token in enumerate(parts) if token in COREFILE_STATES), -1
    )
    # PID sits four columns left of the status and needs a timestamp before it
    if status_index < 5:
        return None
    if only_present and parts[status_index] != PRESENT:
        return None

    signal_index = status_index - 1
    gid_index = signal_index - 1
    uid_index = gid_index - 1
    pid_index = uid_index - 1

    exe_parts = parts[status_index + 1 :]
    if len(exe_parts) > 1 and _SIZE_TOKEN_RE.match(exe_parts[-1]):
        exe_parts = exe_parts[:-1]

    return DumpRecord.create(
        pid=parts[pid_index],
        uid=parts[uid_index],
        gid=parts[gid_index],
        signal=parts[signal_index],
        timestamp=" ".join(parts[:pid_index]),
        executable_path=" ".join(exe_parts),
    )


def parse_listing_text(output: str, only_present: bool = False) -> List[DumpRecord]:
    """
    Parse the legend-stripped table printed by ``coredumpctl list --no-legend``.

    Row layout::

        TIME                         PID  UID GID SIG     COREFILE EXE              SIZE
        Sat 2023-06-17 01:50:45 JST 2465 1000 100 SIGABRT present  /usr/bin/cuteime 1.5M

    Args:
        output: Raw stdout of coredumpctl
        only_present: Keep only rows whose COREFILE column is ``present``

    Returns:
        Records in the order coredumpctl printed them
    """
    records = []
    for line in output.splitlines():
        if not line.strip():
            continue
        record = _parse_table_line(line, only_present)
        if record is None:
            logger.debug(f"Skipping unparseable listing row: {line!r}")
            continue
        records.append(record)
    return records


# ============================================================================
# JSON mode
# ============================================================================


def _as_object_list(decoded: Any) -> List[Dict[str, Any]]:
    if isinstance(decoded, dict):
        return [decoded]
    if isinstance(decoded, list):
        return [entry for entry in decoded if isinstance(entry, dict)]
    raise ValueError(f"unexpected JSON document type: {type(decoded).__name__}")


def _bulk_repair(raw: str) -> str:
    text = raw.strip()
    text = _ADJACENT_OBJECTS_RE.sub("},{", text)
    text = _ARRAY_END_RE.sub("}]", text)
    text = _ARRAY_START_RE.sub("[{", text, count=1)
    if text.startswith("{"):
        text = f"[{text}]"
    return text


def _quote_bare_key(match: "re.Match[str]") -> str:
    if match.group("string") is not None:
        return match.group("string")
    return f'{match.group("lead")}"{match.group("key")}":'


def _decode_objects_individually(raw: str) -> List[Dict[str, Any]]:
    objects = []
    for match in _FLAT_OBJECT_RE.finditer(raw):
        candidate = _WHITESPACE_RE.sub(" ", match.group(0))
        candidate = _BARE_KEY_RE.sub(_quote_bare_key, candidate)
        try:
            decoded = json.loads(candidate)
        except json.JSONDecodeError:
            logger.debug(f"Dropping undecodable coredump object: {candidate[:200]!r}")
            continue
        if isinstance(decoded, dict):
            objects.append(decoded)
    return objects


def repair_json_listing(raw: str) -> List[Dict[str, Any]]:
    """
    Decode the (possibly malformed) JSON array printed by ``coredumpctl list --json``.

    Output that already decodes is returned as-is. Otherwise the bulk repair
    inserts the missing commas between adjacent objects and decodes the
    whole array. When that still fails, every flat ``{...}`` object is
    repaired and decoded on its own. Objects that remain invalid are
    dropped.

    Args:
        raw: Raw stdout of coredumpctl

    Returns:
        Decoded objects in document order

    Raises:
        ListingParseError: If non-empty input yields no decodable object
    """
    if not raw.strip():
        return []

    try:
        return _as_object_list(json.loads(raw))
    except (json.JSONDecodeError, ValueError):
        logger.debug("coredumpctl JSON output is malformed; repairing")

    try:
        return _as_object_list(json.loads(_bulk_repair(raw)))
    except (json.JSONDecodeError, ValueError) as exc:
        logger.debug(f"Bulk JSON repair failed ({exc}); decoding objects one by one")

    objects = _decode_objects_individually(raw)
    if not objects:
        raise ListingParseError(
            "Failed to parse coredumpctl JSON output", sample=raw.strip()[:200]
        )
    return objects


def signal_name(code: Any) -> str:
    """Map a numeric signal to its symbolic name (``6`` -> ``SIGABRT``)."""
    if isinstance(code, str):
        if code.upper().startswith("SIG"):
            return code.upper()
        try:
            code = int(code)
        except ValueError:
            return f"SIG{code}"
    return SIGNAL_NAMES.get(code, f"SIG{code}")


def format_timestamp(usec: Any) -> str:
    """Render a microsecond epoch the way the coredumpctl table does, in local time."""
    moment = datetime.fromtimestamp(int(usec) / 1_000_000).astimezone()
    return moment.strftime(TIMESTAMP_FORMAT)


def _record_from_object(entry: Dict[str, Any]) -> Optional[DumpRecord]:
    if entry.get("pid") is None or entry.get("time") is None:
        return None
    try:
        timestamp = format_timestamp(entry["time"])
    except (TypeError, ValueError, OverflowError, OSError):
        return None
    return DumpRecord.create(
        pid=str(entry["pid"]),
        uid=str(entry.get("uid", "")),
        gid=str(entry.get("gid", "")),
        signal=signal_name(entry.get("sig", "")),
        timestamp=timestamp,
        executable_path=str(entry.get("exe") or ""),
    )


def parse_listing_json(output: str, only_present: bool = False) -> List[DumpRecord]:
    """
    Parse ``coredumpctl list --json`` output into records.

    Args:
        output: Raw stdout of coredumpctl
        only_present: Keep only entries whose ``corefile`` field is ``present``

    Returns:
        Records in document order
    """
    records = []
    for entry in repair_json_listing(output):
        if only_present and entry.get("corefile") != PRESENT:
            continue
        record = _record_from_object(entry)
        if record is None:
            logger.debug(f"Skipping incomplete coredump object: {entry!r}")
            continue
        records.append(record)
    return records


# ============================================================================
# coredumpctl info
# ============================================================================

INFO_LABELS = {
    "Command Line": "command_line",
    "Hostname": "hostname",
}


def parse_info_fields(output: str) -> Dict[str, str]:
    """Pick the recognized ``Label: value`` lines out of ``coredumpctl info``."""
    fields: Dict[str, str] = {}
    for line in output.splitlines():
        label, sep, value = line.partition(":")
        if not sep:
            continue
        attribute = INFO_LABELS.get(label.strip())
        if attribute and attribute not in fields:
            fields[attribute] = value.strip()
    return fields
