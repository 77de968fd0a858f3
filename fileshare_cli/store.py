"""Object store setup for file shares (S3, GCS, Azure).

A *share* is an object-store container: an S3 bucket, a GCS bucket or an
Azure container. Stores are built with the obstore library, which discovers
credentials from the environment following the cloud provider conventions:

- S3: AWS_ACCESS_KEY_ID / AWS_SECRET_ACCESS_KEY, AWS_REGION
- GCS: GOOGLE_APPLICATION_CREDENTIALS or gcloud auth
- Azure: AZURE_STORAGE_ACCOUNT_KEY, SAS token, or Azure CLI

Basic Usage:
    from fileshare_cli.store import StorageContext

    context = StorageContext(account_url="az://myaccount")
    share = context.get_share_reference("docs")  # az://myaccount/docs

Custom S3 Endpoints (MinIO, source.coop):
    context = StorageContext(
        account_url="s3://",
        s3_endpoint="minio.example.com:9000",
        s3_region="us-east-1",
    )
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass

import obstore as obs
from obstore.store import S3Store

from fileshare_cli.errors import MissingAccountUrlError, UnsupportedStoreUrlError
from fileshare_cli.naming import PathSegments, validate_path
from fileshare_cli.references import DirectoryReference, ObjectStore, RemoteFile, ShareReference

logger = logging.getLogger(__name__)

# Builds a store from a share URL (s3://bucket, az://account/container, ...)
StoreFactory = Callable[[str], ObjectStore]

_SUPPORTED_SCHEMES = ("s3://", "gs://", "az://")


# =============================================================================
# URL Parsing
# =============================================================================


def parse_object_store_url(url: str) -> tuple[str, str]:
    """Parse object store URL into (share_url, prefix).

    The share_url is what obstore needs to create a store.
    The prefix is the path within that share.

    Examples:
        s3://bucket/prefix/path -> (s3://bucket, prefix/path)
        gs://bucket/path -> (gs://bucket, path)
        az://account/container/path -> (az://account/container, path)

    Args:
        url: Full object store URL

    Returns:
        Tuple of (share_url, prefix)

    Raises:
        UnsupportedStoreUrlError: If URL scheme is not supported
    """
    if url.startswith(("s3://", "gs://")):
        scheme = url[:5]
        parts = url[5:].split("/", 1)
        if not parts[0]:
            raise UnsupportedStoreUrlError(url)
        prefix = parts[1] if len(parts) > 1 else ""
        return f"{scheme}{parts[0]}", prefix

    elif url.startswith("az://"):
        # Azure: az://account/container/path
        parts = url[5:].split("/", 2)
        if len(parts) < 2 or not parts[0] or not parts[1]:
            raise UnsupportedStoreUrlError(url)
        account, container = parts[0], parts[1]
        prefix = parts[2] if len(parts) > 2 else ""
        return f"az://{account}/{container}", prefix

    else:
        raise UnsupportedStoreUrlError(url)


def share_url_for_name(account_url: str, share_name: str) -> str:
    """Build the share URL for a share name under an account URL.

    Examples:
        ("az://myaccount", "docs") -> az://myaccount/docs
        ("s3://", "docs") -> s3://docs
        ("gs://", "docs") -> gs://docs
    """
    if not account_url.startswith(_SUPPORTED_SCHEMES):
        raise UnsupportedStoreUrlError(account_url)
    base = account_url.rstrip("/")
    if base.endswith(":"):
        return f"{base}//{share_name}"
    return f"{base}/{share_name}"


def _share_name_from_url(share_url: str) -> str:
    return share_url.rstrip("/").rsplit("/", 1)[-1]


def _try_infer_region_from_bucket(bucket: str) -> str | None:
    """Try to infer AWS region from bucket name.

    Some S3-compatible services include region in bucket name, e.g.
    us-west-2.opendata.source.coop -> us-west-2. Best-effort only.
    """
    region_pattern = (
        r"^(us|eu|ap|sa|ca|me|af)-"
        r"(north|south|east|west|central|northeast|southeast|northwest|southwest)-\d"
    )
    match = re.match(region_pattern, bucket)
    if match:
        region_end = bucket.find(".")
        if region_end > 0:
            return bucket[:region_end]
    return None


# =============================================================================
# Store Setup
# =============================================================================


def build_store(
    share_url: str,
    *,
    s3_endpoint: str | None = None,
    s3_region: str | None = None,
    s3_use_ssl: bool = True,
) -> ObjectStore:
    """Create an object store rooted at a share.

    Args:
        share_url: The share URL (e.g., s3://bucket, az://account/container)
        s3_endpoint: Custom S3-compatible endpoint (e.g., "minio.example.com:9000")
        s3_region: S3 region (falls back to the bucket-name heuristic)
        s3_use_ssl: Whether to use HTTPS for S3 endpoint (default: True)

    Returns:
        obstore store instance for the share
    """
    if share_url.startswith("s3://"):
        bucket = share_url.replace("s3://", "").split("/")[0]

        region = s3_region or _try_infer_region_from_bucket(bucket)
        store_kwargs: dict[str, str] = {"region": region} if region else {}

        if s3_endpoint:
            protocol = "https" if s3_use_ssl else "http"
            store_kwargs["endpoint"] = f"{protocol}://{s3_endpoint}"
            if not region:
                store_kwargs["region"] = "us-east-1"  # Default for custom endpoints

        logger.debug("Building S3 store for bucket %s (%s)", bucket, store_kwargs)
        return S3Store(bucket, **store_kwargs)  # type: ignore[arg-type]

    if not share_url.startswith(_SUPPORTED_SCHEMES):
        raise UnsupportedStoreUrlError(share_url)

    logger.debug("Building store from URL %s", share_url)
    return obs.store.from_url(share_url)


# =============================================================================
# Storage Context
# =============================================================================


@dataclass
class StorageContext:
    """Channel to the storage account used by one session.

    Attributes:
        account_url: URL prefix that share names are appended to.
        s3_endpoint: Custom S3-compatible endpoint.
        s3_region: S3 region.
        s3_use_ssl: Whether the custom S3 endpoint uses HTTPS.
        store_factory: Overrides store construction (share_url -> store).
    """

    account_url: str | None = None
    s3_endpoint: str | None = None
    s3_region: str | None = None
    s3_use_ssl: bool = True
    store_factory: StoreFactory | None = None

    def open_store(self, share_url: str) -> ObjectStore:
        """Open the store for a share URL."""
        if self.store_factory is not None:
            return self.store_factory(share_url)
        return build_store(
            share_url,
            s3_endpoint=self.s3_endpoint,
            s3_region=self.s3_region,
            s3_use_ssl=self.s3_use_ssl,
        )

    def get_share_reference(self, share_name: str) -> ShareReference:
        """Build a share handle from a share name and the account URL.

        Raises:
            MissingAccountUrlError: If no account URL is configured.
        """
        if not self.account_url:
            raise MissingAccountUrlError(share_name)
        share_url = share_url_for_name(self.account_url, share_name)
        return ShareReference(name=share_name, url=share_url, store=self.open_store(share_url))

    def share_from_url(self, url: str) -> ShareReference:
        """Build a share handle from a full share URL (no path allowed)."""
        share_url, prefix = parse_object_store_url(url)
        if prefix.strip("/"):
            raise UnsupportedStoreUrlError(url)
        return ShareReference(
            name=_share_name_from_url(share_url), url=share_url, store=self.open_store(share_url)
        )

    def directory_from_url(self, url: str) -> DirectoryReference:
        """Build a directory handle from a URL such as az://account/share/dir/sub."""
        share_url, prefix = parse_object_store_url(url)
        share = self.share_from_url(share_url)
        prefix = prefix.strip("/")
        segments: PathSegments = validate_path(prefix) if prefix else ()
        return share.root_directory().get_subdirectory(segments)

    def file_from_url(self, url: str) -> RemoteFile:
        """Build a file handle from a URL such as s3://bucket/a/b/file.pdf."""
        share_url, prefix = parse_object_store_url(url)
        share = self.share_from_url(share_url)
        return share.root_directory().get_file_reference(validate_path(prefix))
