"""Unit tests for fileshare-cli error classes.

Tests cover:
- Base FileShareError behavior
- Error codes format (FSHR-{category}{number})
- Error to_dict serialization
- Specific error types for each failure kind
"""

from __future__ import annotations

import re

import pytest

from fileshare_cli.errors import (
    ChecksumMismatchError,
    ConfigError,
    FileShareError,
    InvalidParameterSetError,
    InvalidPathError,
    InvalidStateTransitionError,
    MissingAccountUrlError,
    RemoteFileNotFoundError,
    RemoteTransferError,
    TargetFileExistsError,
    TransferCancelledError,
    UnsupportedStoreUrlError,
)


class TestFileShareError:
    """Tests for base FileShareError class."""

    @pytest.mark.unit
    def test_error_has_code_and_message(self) -> None:
        error = FileShareError("Test error message")

        assert error.code == "FSHR-000"
        assert error.message == "Test error message"

    @pytest.mark.unit
    def test_error_str_includes_code(self) -> None:
        error = FileShareError("Test message")

        assert str(error) == "[FSHR-000] Test message"

    @pytest.mark.unit
    def test_error_to_dict(self) -> None:
        error = FileShareError("Test message", extra="value")
        data = error.to_dict()

        assert data == {
            "code": "FSHR-000",
            "kind": "FileShareError",
            "message": "Test message",
            "context": {"extra": "value"},
        }

    @pytest.mark.unit
    def test_context_becomes_attributes(self) -> None:
        error = FileShareError("msg", path="/tmp/x")

        assert error.path == "/tmp/x"  # type: ignore[attr-defined]

    @pytest.mark.unit
    def test_reserved_context_keys_do_not_clobber(self) -> None:
        error = FileShareError("msg", code="HIJACK", message="other")

        assert error.code == "FSHR-000"
        assert error.message == "msg"


class TestSpecificErrors:
    """Tests for each failure kind."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        ("error", "code"),
        [
            (InvalidPathError("a//b", "empty path segment"), "FSHR-PTH001"),
            (InvalidParameterSetError(object()), "FSHR-PRM001"),
            (TargetFileExistsError("/tmp/out"), "FSHR-DST001"),
            (RemoteTransferError("boom", remote_path="docs/a"), "FSHR-NET001"),
            (RemoteFileNotFoundError("docs/a"), "FSHR-NET002"),
            (ChecksumMismatchError("docs/a", "x", "y"), "FSHR-INT001"),
            (TransferCancelledError("docs/a"), "FSHR-XFR001"),
            (InvalidStateTransitionError("completed", "transferring"), "FSHR-XFR002"),
            (MissingAccountUrlError("docs"), "FSHR-CFG001"),
            (UnsupportedStoreUrlError("ftp://x"), "FSHR-CFG002"),
        ],
    )
    def test_codes(self, error: FileShareError, code: str) -> None:
        assert error.code == code
        assert re.fullmatch(r"FSHR-[A-Z]{3}\d{3}", error.code)
        assert isinstance(error, FileShareError)

    @pytest.mark.unit
    def test_not_found_is_a_transfer_error(self) -> None:
        error = RemoteFileNotFoundError("docs/a.pdf")

        assert isinstance(error, RemoteTransferError)
        assert error.remote_path == "docs/a.pdf"  # type: ignore[attr-defined]

    @pytest.mark.unit
    def test_config_errors_share_base(self) -> None:
        assert isinstance(MissingAccountUrlError("docs"), ConfigError)
        assert isinstance(UnsupportedStoreUrlError("ftp://x"), ConfigError)

    @pytest.mark.unit
    def test_target_exists_mentions_force(self) -> None:
        error = TargetFileExistsError("/tmp/out")

        assert "--force" in error.message
        assert error.to_dict()["context"] == {"path": "/tmp/out"}

    @pytest.mark.unit
    def test_invalid_parameter_set_names_type(self) -> None:
        error = InvalidParameterSetError(42)

        assert error.parameter_set == "int"  # type: ignore[attr-defined]

    @pytest.mark.unit
    def test_kind_is_class_name(self) -> None:
        assert ChecksumMismatchError("a", "b", "c").kind == "ChecksumMismatchError"
