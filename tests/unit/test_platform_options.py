"""Unit tests for platform-conditional transfer options."""

from __future__ import annotations

import logging

import pytest

from fileshare_cli.platform_options import (
    WINDOWS_PLATFORM,
    build_transfer_options,
    supports_extended_attributes,
)
from fileshare_cli.transfer import DEFAULT_CHUNK_SIZE


class TestSupportsExtendedAttributes:
    @pytest.mark.unit
    def test_windows(self) -> None:
        assert supports_extended_attributes(WINDOWS_PLATFORM) is True

    @pytest.mark.unit
    @pytest.mark.parametrize("platform", ["linux", "darwin"])
    def test_other_platforms(self, platform: str) -> None:
        assert supports_extended_attributes(platform) is False


class TestBuildTransferOptions:
    @pytest.mark.unit
    def test_defaults(self) -> None:
        options = build_transfer_options(platform="linux")

        assert options.verify_checksum is False
        assert options.overwrite is False
        assert options.preserve_extended_attributes is False
        assert options.chunk_size == DEFAULT_CHUNK_SIZE

    @pytest.mark.unit
    def test_preserve_kept_on_windows(self) -> None:
        options = build_transfer_options(
            preserve_extended_attributes=True, platform=WINDOWS_PLATFORM
        )

        assert options.preserve_extended_attributes is True

    @pytest.mark.unit
    def test_preserve_forced_off_elsewhere(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="fileshare_cli.platform_options"):
            options = build_transfer_options(
                preserve_extended_attributes=True, verify_checksum=True, platform="linux"
            )

        assert options.preserve_extended_attributes is False
        assert options.verify_checksum is True
        assert "only supported on Windows" in caplog.text
