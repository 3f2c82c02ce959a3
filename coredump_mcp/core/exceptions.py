"""
Custom exception classes for coredump_mcp.

All exceptions inherit from CoredumpError to allow for centralized
exception handling at the MCP server level.
"""

from typing import Optional


class CoredumpError(Exception):
    """Base exception for all coredump_mcp errors."""

    error_code: str = "CDMCP-E000"
    error_type: str = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        error_type: Optional[str] = None,
    ):
        self.message = message
        if error_code:
            self.error_code = error_code
        if error_type:
            self.error_type = error_type
        super().__init__(message)


class ValidationError(CoredumpError):
    """Raised when a required parameter is missing or malformed."""

    error_code = "CDMCP-E001"
    error_type = "INVALID_PARAMS"

    def __init__(self, message: str, details: Optional[dict] = None):
        self.details = details or {}
        super().__init__(message, self.error_code, self.error_type)


class NotFoundError(CoredumpError):
    """Raised when a coredump id does not resolve, even after a refresh."""

    error_code = "CDMCP-E002"
    error_type = "NOT_FOUND"

    def __init__(self, coredump_id: str):
        self.coredump_id = coredump_id
        message = f"Coredump with ID {coredump_id} not found"
        super().__init__(message, self.error_code, self.error_type)


class ToolNotFoundError(CoredumpError):
    """Raised when a required CLI tool is not found in the system."""

    error_code = "CDMCP-E003"
    error_type = "INTERNAL_ERROR"

    def __init__(self, tool_name: str):
        self.tool_name = tool_name
        message = f"Tool '{tool_name}' not found. Please install it."
        super().__init__(message, self.error_code, self.error_type)


class ExecutionTimeoutError(CoredumpError):
    """Raised when a subprocess execution exceeds the timeout limit."""

    error_code = "CDMCP-E004"
    error_type = "INTERNAL_ERROR"

    def __init__(self, timeout_seconds: int):
        self.timeout_seconds = timeout_seconds
        message = f"Operation timed out after {timeout_seconds} seconds."
        super().__init__(message, self.error_code, self.error_type)


class ToolExecutionError(CoredumpError):
    """Raised when an external command fails.

    The message carries the tool's own error text unchanged.
    """

    error_code = "CDMCP-E005"
    error_type = "INTERNAL_ERROR"

    def __init__(self, message: str):
        super().__init__(message, self.error_code, self.error_type)


class ListingParseError(CoredumpError):
    """Raised when a whole coredump listing cannot be decoded."""

    error_code = "CDMCP-E006"
    error_type = "INTERNAL_ERROR"

    def __init__(self, message: str, sample: str = ""):
        self.sample = sample
        super().__init__(message, self.error_code, self.error_type)
