"""Platform-conditional transfer options.

Extended-attribute preservation (timestamps and the read-only flag of the
remote file) is only offered on Windows hosts, where file shares are mounted
and consumed with those attributes. Everywhere else the option is forced off
here, so the transfer executor never has to look at the platform.
"""

from __future__ import annotations

import logging
import sys

from fileshare_cli.transfer import DEFAULT_CHUNK_SIZE, TransferOptions

logger = logging.getLogger(__name__)

WINDOWS_PLATFORM = "win32"


def supports_extended_attributes(platform: str | None = None) -> bool:
    """Return True if the host OS family surfaces the preserve-attributes option."""
    return (platform or sys.platform) == WINDOWS_PLATFORM


def build_transfer_options(
    *,
    verify_checksum: bool = False,
    overwrite: bool = False,
    preserve_extended_attributes: bool = False,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    platform: str | None = None,
) -> TransferOptions:
    """Build TransferOptions, dropping options the host platform does not offer."""
    preserve = preserve_extended_attributes
    if preserve and not supports_extended_attributes(platform):
        logger.warning("Preserving file attributes is only supported on Windows; ignoring")
        preserve = False
    return TransferOptions(
        verify_checksum=verify_checksum,
        overwrite=overwrite,
        preserve_extended_attributes=preserve,
        chunk_size=chunk_size,
    )
