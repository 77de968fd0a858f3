"""Download a single file from a file share.

This is the orchestration layer. One invocation goes through:

1. Destination resolution (absolute path, once, default ".")
2. Reference resolution from one of four addressing modes
3. Target planning (existing directory -> file inside it, else literal path)
4. Confirmation gate (what-if / confirm); declining is a no-op, not an error
5. Transfer (attribute fetch, then streamed download with progress)
6. Pass-through output of a FileDescriptor, if requested

Basic Usage:
    from fileshare_cli.download import DownloadRequest, DownloadSession, run_download
    from fileshare_cli.resolve import ByShareName
    from fileshare_cli.store import StorageContext

    session = DownloadSession(context=StorageContext(account_url="az://myaccount"))
    outcome = run_download(
        DownloadRequest(
            address=ByShareName("docs", "a/b/report.pdf"),
            destination="downloads/",
            check_md5=True,
        ),
        session,
    )
    if not outcome.success:
        print(outcome.error.to_dict())

Background Jobs:
    job = run_download(DownloadRequest(..., as_job=True), session)
    get_job_registry().wait(job.job_id)
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from fileshare_cli.cancellation import CancellationToken
from fileshare_cli.destination import DestinationSpec, plan_target
from fileshare_cli.errors import FileShareError
from fileshare_cli.jobs import Job, JobRegistry, get_job_registry
from fileshare_cli.output import info
from fileshare_cli.platform_options import build_transfer_options
from fileshare_cli.progress import NullProgressSink, ProgressRecord, ProgressSink
from fileshare_cli.references import RemoteFile
from fileshare_cli.resolve import (
    ByDirectory,
    ByFile,
    ByShare,
    ByShareName,
    FileAddress,
    resolve_remote_file,
)
from fileshare_cli.store import StorageContext
from fileshare_cli.transfer import DEFAULT_CHUNK_SIZE, TransferEngine, execute_transfer

logger = logging.getLogger(__name__)

DOWNLOAD_ACTION = "Download"

# (target, action) -> True to proceed
ConfirmCallback = Callable[[str, str], bool]


# =============================================================================
# Data Classes
# =============================================================================


class DownloadStatus(Enum):
    """Outcome of one download invocation."""

    COMPLETED = "completed"
    DECLINED = "declined"
    FAILED = "failed"


@dataclass(frozen=True)
class DownloadRequest:
    """Parameters of one download invocation.

    Attributes:
        address: Which remote file to download (one of four addressing modes).
        destination: Local file or directory (default: current directory).
        check_md5: Verify the content MD5 against the stored Content-MD5.
        force: Overwrite an existing local file.
        pass_thru: Emit a FileDescriptor after a successful download.
        as_job: Run as a background job and return immediately.
        preserve_attributes: Copy file attributes to the local file (Windows only).
        chunk_size: Minimum streamed chunk size in bytes.
    """

    address: FileAddress
    destination: str | None = None
    check_md5: bool = False
    force: bool = False
    pass_thru: bool = False
    as_job: bool = False
    preserve_attributes: bool = False
    chunk_size: int = DEFAULT_CHUNK_SIZE


@dataclass
class FileDescriptor:
    """Description of a downloaded remote file (pass-through output)."""

    name: str
    share: str
    full_path: str
    key: str
    length: int
    local_path: str
    last_modified: str | None = None
    e_tag: str | None = None
    version: str | None = None
    content_md5: str | None = None

    @classmethod
    def from_remote(cls, remote: RemoteFile, local_path: Path) -> FileDescriptor:
        properties = remote.properties
        last_modified = None
        if properties is not None and properties.last_modified is not None:
            last_modified = properties.last_modified.isoformat()
        return cls(
            name=remote.base_name,
            share=remote.share.name,
            full_path=remote.full_path,
            key=remote.key,
            length=remote.length,
            local_path=str(local_path),
            last_modified=last_modified,
            e_tag=properties.e_tag if properties else None,
            version=properties.version if properties else None,
            content_md5=properties.content_md5 if properties else None,
        )

    def to_dict(self) -> dict[str, Any]:
        return dataclasses.asdict(self)


@dataclass
class DownloadOutcome:
    """Result of a download invocation.

    Attributes:
        status: COMPLETED, DECLINED (confirmation gate said no) or FAILED.
        target: Local target file, once planned.
        descriptor: Pass-through descriptor, when requested and completed.
        progress: Final progress record, when a transfer ran.
        error: Structured error when FAILED.
    """

    status: DownloadStatus
    target: Path | None = None
    descriptor: FileDescriptor | None = None
    progress: ProgressRecord | None = None
    error: FileShareError | None = None

    @property
    def success(self) -> bool:
        return self.status is not DownloadStatus.FAILED


@dataclass
class DownloadSession:
    """Host session a download runs in.

    Attributes:
        context: Storage channel (account URL, store construction).
        token: Cancellation signal for the whole invocation.
        confirm: Confirmation prompt; None proceeds without asking.
        what_if: Report what would be downloaded and stop.
        notify: Receives the what-if message (default: info with a [DRY RUN] prefix).
        sink: Progress reporting sink.
        emit: Receives pass-through descriptors.
        cwd: Directory relative destinations resolve against (default: process cwd).
        jobs: Registry for background jobs (default: process-wide registry).
        engine: Transfer engine (default: TransferEngine()).
        platform: Host platform override for platform-conditional options.
    """

    context: StorageContext = field(default_factory=StorageContext)
    token: CancellationToken = field(default_factory=CancellationToken)
    confirm: ConfirmCallback | None = None
    what_if: bool = False
    notify: Callable[[str], None] | None = None
    sink: ProgressSink = field(default_factory=NullProgressSink)
    emit: Callable[[FileDescriptor], None] | None = None
    cwd: Path | None = None
    jobs: JobRegistry | None = None
    engine: TransferEngine | None = None
    platform: str | None = None

    def should_process(self, target: str, action: str) -> bool:
        """Confirmation gate for writing target."""
        if self.what_if:
            message = f'Performing the operation "{action}" on target "{target}"'
            if self.notify is not None:
                self.notify(message)
            else:
                info(message, dry_run=True)
            return False
        if self.confirm is None:
            return True
        return self.confirm(target, action)


# =============================================================================
# Download Functions
# =============================================================================


def describe_address(address: FileAddress) -> str:
    """Short human-readable description of an address, used for job names."""
    match address:
        case ByShareName(share_name=name, path=path):
            return f"{name}/{path.lstrip('/')}"
        case ByShare(share=share, path=path):
            return f"{share.name}/{path.lstrip('/')}"
        case ByDirectory(directory=directory, path=path):
            prefix = "/".join((directory.share.name, *directory.segments))
            return f"{prefix}/{path.lstrip('/')}"
        case ByFile(file=remote):
            return remote.full_path
        case _:
            return type(address).__name__


async def download_file_content(
    request: DownloadRequest,
    session: DownloadSession,
    destination: DestinationSpec | None = None,
) -> DownloadOutcome:
    """Download one remote file.

    Args:
        request: What to download and how.
        session: Host session (storage channel, token, confirmation, sinks).
        destination: Pre-resolved destination; resolved from request if None.

    Returns:
        DownloadOutcome with status COMPLETED or DECLINED.

    Raises:
        FileShareError: Any failure kind (InvalidPathError, TargetFileExistsError,
            RemoteTransferError, ChecksumMismatchError, TransferCancelledError, ...).
    """
    if destination is None:
        destination = DestinationSpec.resolve(request.destination, session.cwd)

    remote = resolve_remote_file(request.address, session.context)
    target = plan_target(destination, remote.base_name, force=request.force)

    if not session.should_process(str(target.path), DOWNLOAD_ACTION):
        logger.debug("Download of %s to %s declined", remote.full_path, target.path)
        return DownloadOutcome(status=DownloadStatus.DECLINED, target=target.path)

    options = build_transfer_options(
        verify_checksum=request.check_md5,
        overwrite=target.overwrite,
        preserve_extended_attributes=request.preserve_attributes,
        chunk_size=request.chunk_size,
        platform=session.platform,
    )
    record = await execute_transfer(
        remote,
        target.path,
        options,
        token=session.token,
        sink=session.sink,
        engine=session.engine,
    )

    descriptor = None
    if request.pass_thru:
        descriptor = FileDescriptor.from_remote(remote, target.path)
        if session.emit is not None:
            session.emit(descriptor)

    return DownloadOutcome(
        status=DownloadStatus.COMPLETED,
        target=target.path,
        descriptor=descriptor,
        progress=record,
    )


def run_download(request: DownloadRequest, session: DownloadSession) -> DownloadOutcome | Job:
    """Run a download inline, or start it as a background job.

    Inline runs block until the transfer ends. Structured failures are returned
    as a FAILED outcome instead of being raised; anything else propagates.

    With ``request.as_job`` the job is registered before the remote file is
    resolved and the Job is returned immediately. The job gets its own
    cancellation token; its result is the DownloadOutcome, and its error the
    FileShareError that stopped it.
    """
    destination = DestinationSpec.resolve(request.destination, session.cwd)

    if request.as_job:
        registry = session.jobs if session.jobs is not None else get_job_registry()
        job = registry.register(f"Download {describe_address(request.address)}")
        job_session = dataclasses.replace(session, token=job.token)
        return registry.start(
            job, lambda: download_file_content(request, job_session, destination)
        )

    try:
        return asyncio.run(download_file_content(request, session, destination))
    except FileShareError as err:
        logger.debug("Download failed: %s", err)
        return DownloadOutcome(status=DownloadStatus.FAILED, error=err)
