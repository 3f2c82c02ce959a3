"""
Input validators for tool parameters.
"""

from pathlib import Path
from typing import Any

from coredump_mcp.core.exceptions import ValidationError


def require_text(value: Any, name: str) -> str:
    """
    Ensure a required string parameter was supplied.

    Raises:
        ValidationError: If the value is missing, not a string, or blank
    """
    if value is None or not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{name} is required", details={"parameter": name})
    return value


def validate_output_path(output_path: Any) -> Path:
    """
    Validate the destination of an extracted coredump.

    The parent directory must already exist and the path must not name a
    directory.
    """
    require_text(output_path, "output_path")
    path = Path(output_path).expanduser()
    if path.is_dir():
        raise ValidationError(
            f"Output path is a directory: {path}",
            details={"output_path": str(path)},
        )
    if not path.parent.is_dir():
        raise ValidationError(
            f"Output directory does not exist: {path.parent}",
            details={"output_path": str(path)},
        )
    return path
