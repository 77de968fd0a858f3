"""JSON output envelope for machine-readable CLI output.

Envelope Structure:
    {
        "success": true|false,
        "command": "get-content",
        "data": { ... },
        "errors": [ ... ]  # Only present when success=false
    }

Usage:
    from fileshare_cli.json_output import error_envelope, ErrorDetail, success_envelope

    envelope = success_envelope("get-content", {"target": "/tmp/report.pdf"})
    print(envelope.to_json())

    envelope = error_envelope("get-content", [ErrorDetail.from_exception(err)])
    print(envelope.to_json())
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from fileshare_cli.errors import FileShareError


@dataclass
class ErrorDetail:
    """Structure for individual error entries in the errors array.

    Attributes:
        type: Error class name (e.g., "TargetFileExistsError")
        message: Human-readable error description
        code: Structured error code (e.g., "FSHR-DST001"), if any
    """

    type: str
    message: str
    code: str | None = None

    @classmethod
    def from_exception(cls, err: BaseException) -> ErrorDetail:
        if isinstance(err, FileShareError):
            return cls(type=err.kind, message=err.message, code=err.code)
        return cls(type=type(err).__name__, message=str(err))

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary for JSON serialization."""
        result = {"type": self.type, "message": self.message}
        if self.code is not None:
            result["code"] = self.code
        return result


@dataclass
class OutputEnvelope:
    """The consistent wrapper structure for all JSON command output.

    Attributes:
        success: True if command completed without errors, False otherwise
        command: Name of the command that produced this output
        data: Command-specific payload; structure varies by command
        errors: Array of error objects; present only when success=False
    """

    success: bool
    command: str
    data: dict[str, Any] | None
    errors: list[ErrorDetail] | None = field(default=None)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary; the errors field is excluded when None."""
        result: dict[str, Any] = {
            "success": self.success,
            "command": self.command,
            "data": self.data,
        }

        if self.errors is not None:
            result["errors"] = [e.to_dict() for e in self.errors]

        return result

    def to_json(self, *, indent: int | None = 2) -> str:
        """Convert to JSON string (indent=None for compact output)."""
        return json.dumps(self.to_dict(), indent=indent)


def success_envelope(command: str, data: dict[str, Any]) -> OutputEnvelope:
    """Create a success envelope with the given command and data."""
    return OutputEnvelope(success=True, command=command, data=data)


def error_envelope(
    command: str,
    errors: list[ErrorDetail],
    *,
    data: dict[str, Any] | None = None,
) -> OutputEnvelope:
    """Create an error envelope with the given command and errors."""
    return OutputEnvelope(
        success=False,
        command=command,
        data=data if data is not None else {},
        errors=errors,
    )
