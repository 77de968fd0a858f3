"""Share, directory and file references.

References are cheap handles: building one never touches the network. Only
``RemoteFile.fetch_attributes`` (a HEAD request) and the transfer itself do I/O.

    share = ShareReference(name="docs", url="az://acct/docs", store=store)
    remote = share.root_directory().get_file_reference(("a", "b", "report.pdf"))
    remote.full_path    # "docs/a/b/report.pdf"
    remote.base_name    # "report.pdf"
    await remote.fetch_attributes()
    remote.length       # size reported by the service
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

import obstore as obs
from obstore.exceptions import BaseError as ObstoreError
from obstore.store import (
    AzureStore,
    GCSStore,
    HTTPStore,
    LocalStore,
    MemoryStore,
    S3Store,
)

from fileshare_cli.errors import RemoteFileNotFoundError, RemoteTransferError
from fileshare_cli.naming import PathSegments, join_segments

logger = logging.getLogger(__name__)

# Type alias for all supported object stores
ObjectStore = S3Store | GCSStore | AzureStore | HTTPStore | LocalStore | MemoryStore

# Exceptions that mean the storage service or the network failed
REMOTE_ERRORS: tuple[type[BaseException], ...] = (
    ObstoreError,
    ConnectionError,
    TimeoutError,
    FileNotFoundError,
)

# Single-part S3 and GCS e-tags are the hex MD5 of the content
_MD5_E_TAG = re.compile(r'^"?[0-9a-fA-F]{32}"?$')


def translate_remote_error(err: BaseException, remote_path: str) -> RemoteTransferError:
    """Map a transport exception onto the structured error taxonomy."""
    if isinstance(err, FileNotFoundError):
        return RemoteFileNotFoundError(remote_path)
    return RemoteTransferError(
        f"Remote request for {remote_path} failed: {err}",
        remote_path=remote_path,
        cause=type(err).__name__,
    )


@dataclass
class FileProperties:
    """Attributes of a remote file as reported by the service.

    Attributes:
        length: Size in bytes.
        last_modified: Last modification time, if reported.
        e_tag: Entity tag, if reported.
        version: Object version, if versioning is enabled.
        content_md5: Stored MD5 of the content (base64 or hex), if any.
        metadata: Other object attributes (content type, user metadata).
    """

    length: int
    last_modified: datetime | None = None
    e_tag: str | None = None
    version: str | None = None
    content_md5: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_object_meta(cls, meta: Any) -> FileProperties:
        """Build properties from an obstore ``ObjectMeta`` mapping."""
        return cls(
            length=int(meta["size"]),
            last_modified=meta.get("last_modified"),
            e_tag=meta.get("e_tag"),
            version=meta.get("version"),
        )

    def apply_attributes(self, attributes: Any) -> None:
        """Merge attributes returned with a GET (``Content-MD5`` and metadata)."""
        for key, value in dict(attributes or {}).items():
            if key.lower() == "content-md5":
                self.content_md5 = str(value)
            else:
                self.metadata[key] = str(value)

    @property
    def expected_md5(self) -> str | None:
        """MD5 to verify downloads against.

        A stored ``Content-MD5`` attribute wins. Otherwise a plain 32-hex-digit
        e-tag is used. Multipart e-tags (``<hex>-<parts>``) and Azure e-tags
        (``0x...``) do not carry the content MD5 and are ignored.
        """
        if self.content_md5:
            return self.content_md5
        if self.e_tag and _MD5_E_TAG.match(self.e_tag):
            return self.e_tag
        return None


@dataclass
class ShareReference:
    """Handle to a share (object-store container)."""

    name: str
    url: str
    store: ObjectStore = field(repr=False, compare=False)

    def root_directory(self) -> DirectoryReference:
        return DirectoryReference(share=self, segments=())


@dataclass
class DirectoryReference:
    """Handle to a directory (key prefix) within a share."""

    share: ShareReference
    segments: PathSegments = ()

    @property
    def name(self) -> str:
        return self.segments[-1] if self.segments else ""

    def get_subdirectory(self, segments: PathSegments) -> DirectoryReference:
        return DirectoryReference(share=self.share, segments=self.segments + tuple(segments))

    def get_file_reference(self, segments: PathSegments) -> RemoteFile:
        """Resolve a file below this directory from validated path segments."""
        return RemoteFile(share=self.share, segments=self.segments + tuple(segments))


@dataclass
class RemoteFile:
    """Handle to a file within a share.

    ``properties`` stays ``None`` until ``fetch_attributes`` has completed;
    ``length`` reads as 0 until then.
    """

    share: ShareReference
    segments: PathSegments
    properties: FileProperties | None = field(default=None, compare=False)

    @property
    def base_name(self) -> str:
        return self.segments[-1]

    @property
    def key(self) -> str:
        """Object key within the share."""
        return join_segments(self.segments)

    @property
    def full_path(self) -> str:
        return f"{self.share.name}/{self.key}"

    @property
    def length(self) -> int:
        return self.properties.length if self.properties else 0

    async def fetch_attributes(self) -> FileProperties:
        """Fetch size and metadata from the service.

        Raises:
            RemoteFileNotFoundError: If the file does not exist.
            RemoteTransferError: If the request fails.
        """
        logger.debug("Fetching attributes of %s", self.full_path)
        try:
            meta = await obs.head_async(self.share.store, self.key)
        except REMOTE_ERRORS as err:
            raise translate_remote_error(err, self.full_path) from err
        self.properties = FileProperties.from_object_meta(meta)
        return self.properties
