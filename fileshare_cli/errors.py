"""Structured error codes for fileshare-cli.

All errors follow the format FSHR-{category}{number}:
- FSHR-PTH*: Remote path errors
- FSHR-PRM*: Parameter set errors
- FSHR-DST*: Local destination errors
- FSHR-NET*: Remote transfer (network) errors
- FSHR-INT*: Integrity errors
- FSHR-XFR*: Transfer lifecycle errors
- FSHR-CFG*: Configuration errors
"""

from __future__ import annotations

from typing import Any


class FileShareError(Exception):
    """Base class for all fileshare-cli errors.

    All errors have:
    - code: Structured error code (e.g., FSHR-PTH001)
    - message: Human-readable error message
    """

    code: str = "FSHR-000"

    # Reserved attribute names that cannot be overwritten by context
    _RESERVED_ATTRS = frozenset({"code", "message", "context", "args"})

    def __init__(self, message: str, **context: Any) -> None:
        """Initialize a fileshare-cli error.

        Args:
            message: Human-readable error message.
            **context: Additional context stored as error attributes.
                Reserved keys (code, message, context, args) are ignored.
        """
        self.message = message
        self.context = context
        for key, value in context.items():
            if key not in self._RESERVED_ATTRS:
                setattr(self, key, value)
        super().__init__(f"[{self.code}] {message}")

    @property
    def kind(self) -> str:
        """Error class name, used as the failure kind in structured output."""
        return type(self).__name__

    def to_dict(self) -> dict[str, Any]:
        """Convert error to JSON-serializable dict."""
        return {
            "code": self.code,
            "kind": self.kind,
            "message": self.message,
            "context": {key: str(value) for key, value in self.context.items()},
        }


# Path Errors (FSHR-PTH*)
class InvalidPathError(FileShareError):
    """Raised when a remote path string cannot be split into valid segments.

    Error code: FSHR-PTH001
    """

    code = "FSHR-PTH001"

    def __init__(self, path: str | None, reason: str) -> None:
        super().__init__(f"Invalid remote path {path!r}: {reason}", path=path, reason=reason)


# Parameter Set Errors (FSHR-PRM*)
class InvalidParameterSetError(FileShareError):
    """Raised when an address does not match any known addressing mode.

    Error code: FSHR-PRM001
    """

    code = "FSHR-PRM001"

    def __init__(self, address: object) -> None:
        super().__init__(
            f"Invalid parameter set: {type(address).__name__}",
            parameter_set=type(address).__name__,
        )


# Destination Errors (FSHR-DST*)
class TargetFileExistsError(FileShareError):
    """Raised when the local target exists and overwriting was not allowed.

    Error code: FSHR-DST001
    """

    code = "FSHR-DST001"

    def __init__(self, path: str) -> None:
        super().__init__(
            f"File already exists at {path}, use --force to overwrite it", path=path
        )


# Transfer Errors (FSHR-NET*)
class RemoteTransferError(FileShareError):
    """Raised when the storage service or the network fails during a download.

    Error code: FSHR-NET001

    Not retried here; retry policy belongs to the transfer engine or caller.
    """

    code = "FSHR-NET001"

    def __init__(self, message: str, *, remote_path: str, **context: Any) -> None:
        super().__init__(message, remote_path=remote_path, **context)


class RemoteFileNotFoundError(RemoteTransferError):
    """Raised when the remote file does not exist.

    Error code: FSHR-NET002
    """

    code = "FSHR-NET002"

    def __init__(self, remote_path: str) -> None:
        super().__init__(f"Remote file not found: {remote_path}", remote_path=remote_path)


# Integrity Errors (FSHR-INT*)
class ChecksumMismatchError(FileShareError):
    """Raised when the downloaded content does not match the stored MD5.

    Error code: FSHR-INT001
    """

    code = "FSHR-INT001"

    def __init__(self, remote_path: str, expected: str, actual: str) -> None:
        super().__init__(
            f"MD5 mismatch for {remote_path}: expected {expected}, got {actual}",
            remote_path=remote_path,
            expected=expected,
            actual=actual,
        )


# Lifecycle Errors (FSHR-XFR*)
class TransferCancelledError(FileShareError):
    """Raised when the invocation's cancellation token was tripped.

    Error code: FSHR-XFR001
    """

    code = "FSHR-XFR001"

    def __init__(self, remote_path: str) -> None:
        super().__init__(f"Download of {remote_path} was cancelled", remote_path=remote_path)


class InvalidStateTransitionError(FileShareError):
    """Raised when a progress record is moved backwards or out of a terminal state.

    Error code: FSHR-XFR002
    """

    code = "FSHR-XFR002"

    def __init__(self, current: str, requested: str) -> None:
        super().__init__(
            f"Cannot move transfer from {current} to {requested}",
            current=current,
            requested=requested,
        )


# Configuration Errors (FSHR-CFG*)
class ConfigError(FileShareError):
    """Base class for configuration errors."""

    code = "FSHR-CFG000"


class MissingAccountUrlError(ConfigError):
    """Raised when a share is addressed by name but no account URL is configured.

    Error code: FSHR-CFG001
    """

    code = "FSHR-CFG001"

    def __init__(self, share_name: str) -> None:
        super().__init__(
            f"Cannot resolve share '{share_name}': no account URL configured. "
            "Pass --account-url or run 'fileshare config set account_url az://<account>'",
            share_name=share_name,
        )


class UnsupportedStoreUrlError(ConfigError):
    """Raised when a store URL uses a scheme that cannot be opened.

    Error code: FSHR-CFG002
    """

    code = "FSHR-CFG002"

    def __init__(self, url: str) -> None:
        super().__init__(f"Unsupported URL scheme: {url}", url=url)
