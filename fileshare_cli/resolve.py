"""Resolve a remote file from one of four addressing modes.

Usage:
    from fileshare_cli.resolve import ByShareName, resolve_remote_file

    remote = resolve_remote_file(ByShareName("docs", "a/b/report.pdf"), context)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from fileshare_cli.errors import InvalidParameterSetError
from fileshare_cli.naming import validate_path
from fileshare_cli.references import DirectoryReference, RemoteFile, ShareReference
from fileshare_cli.store import StorageContext

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ByShareName:
    """File addressed by share name plus a path inside the share."""

    share_name: str
    path: str


@dataclass(frozen=True)
class ByShare:
    """File addressed by a share handle plus a path inside the share."""

    share: ShareReference
    path: str


@dataclass(frozen=True)
class ByDirectory:
    """File addressed by a directory handle plus a path below it."""

    directory: DirectoryReference
    path: str


@dataclass(frozen=True)
class ByFile:
    """File addressed directly by its handle."""

    file: RemoteFile


FileAddress = ByShareName | ByShare | ByDirectory | ByFile


def resolve_remote_file(address: FileAddress, context: StorageContext) -> RemoteFile:
    """Resolve the remote file an address points at.

    The path is validated before anything else, so a malformed path never
    causes a store to be built or a request to be sent.

    Args:
        address: One of ByShareName, ByShare, ByDirectory or ByFile.
        context: Storage channel used to open a share by name.

    Returns:
        The remote file handle. Attributes are not fetched.

    Raises:
        InvalidPathError: If the remote path is malformed.
        InvalidParameterSetError: If address is not a known addressing mode.
    """
    match address:
        case ByFile(file=remote):
            return remote
        case ByShareName(share_name=name, path=path):
            segments = validate_path(path)
            share = context.get_share_reference(name)
            remote = share.root_directory().get_file_reference(segments)
        case ByShare(share=share, path=path):
            remote = share.root_directory().get_file_reference(validate_path(path))
        case ByDirectory(directory=directory, path=path):
            remote = directory.get_file_reference(validate_path(path))
        case _:
            raise InvalidParameterSetError(address)

    logger.debug("Resolved %s to %s", type(address).__name__, remote.full_path)
    return remote
