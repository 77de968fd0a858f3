"""Download one remote file into one local file.

Two layers:

- ``TransferEngine`` streams the content with obstore, writes it to the local
  file, verifies MD5 when asked, and reports bytes through a callback.
- ``execute_transfer`` drives the engine for one invocation: it fetches the
  file attributes first, owns the ProgressRecord and its state machine, and
  binds the invocation's CancellationToken to the running task.

Usage:
    record = await execute_transfer(
        remote,
        target_path,
        TransferOptions(verify_checksum=True),
        token=CancellationToken(),
        sink=OutputProgressSink(),
    )

Partially written target files are removed when a transfer fails or is
cancelled. A pre-existing file that was not opened is never touched.
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import hashlib
import logging
import os
import stat
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import obstore as obs

from fileshare_cli.cancellation import CancellationToken
from fileshare_cli.errors import (
    ChecksumMismatchError,
    FileShareError,
    RemoteTransferError,
    TargetFileExistsError,
    TransferCancelledError,
)
from fileshare_cli.progress import (
    PREPARING_STATUS,
    NullProgressSink,
    ProgressRecord,
    ProgressSink,
    TransferState,
    next_activity_id,
)
from fileshare_cli.references import (
    REMOTE_ERRORS,
    FileProperties,
    RemoteFile,
    translate_remote_error,
)

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 4 * 1024 * 1024

# Object metadata key marking a file read-only when attributes are preserved
READ_ONLY_METADATA_KEY = "is-read-only"


@dataclass(frozen=True)
class TransferOptions:
    """Options for one download.

    Attributes:
        verify_checksum: Compare the content MD5 with the stored Content-MD5.
        overwrite: Replace an existing target file instead of failing.
        preserve_extended_attributes: Copy last-modified time and the read-only
            flag onto the local file. Only ever True on Windows hosts.
        chunk_size: Minimum size of streamed chunks, in bytes.
    """

    verify_checksum: bool = False
    overwrite: bool = False
    preserve_extended_attributes: bool = False
    chunk_size: int = DEFAULT_CHUNK_SIZE


# =============================================================================
# Checksum Helpers
# =============================================================================


def decode_md5(value: str) -> bytes | None:
    """Decode a stored MD5 given either as base64 (Content-MD5) or as hex."""
    text = value.strip().strip('"')
    if len(text) == 32:
        try:
            return bytes.fromhex(text)
        except ValueError:
            pass
    try:
        digest = base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError):
        return None
    return digest if len(digest) == 16 else None


def _encode_md5(digest: bytes) -> str:
    return base64.b64encode(digest).decode("ascii")


# =============================================================================
# Transfer Engine
# =============================================================================


class TransferEngine:
    """Stream a remote file to a local path with obstore."""

    async def download(
        self,
        remote: RemoteFile,
        path: Path,
        options: TransferOptions,
        token: CancellationToken,
        progress: Callable[[int], None],
    ) -> int:
        """Download remote into path.

        Args:
            remote: File to download; attributes should already be fetched.
            path: Local target file.
            options: Transfer options.
            token: Checked between chunks.
            progress: Called with the size of every chunk written.

        Returns:
            Number of bytes written.

        Raises:
            TargetFileExistsError: If path exists and overwrite is off.
            RemoteTransferError: If the service or network fails, or sizes disagree.
            ChecksumMismatchError: If verification is on and the MD5 differs.
            TransferCancelledError: If the token was tripped.
        """
        # Fail before any network I/O; the exclusive open below still guards races
        if not options.overwrite and path.exists():
            raise TargetFileExistsError(str(path))

        try:
            result = await obs.get_async(remote.share.store, remote.key)
        except REMOTE_ERRORS as err:
            raise translate_remote_error(err, remote.full_path) from err

        properties = remote.properties
        if properties is None:
            properties = FileProperties.from_object_meta(result.meta)
            remote.properties = properties
        properties.apply_attributes(result.attributes)

        path.parent.mkdir(parents=True, exist_ok=True)
        try:
            handle = open(path, "wb" if options.overwrite else "xb")  # noqa: SIM115
        except FileExistsError as err:
            raise TargetFileExistsError(str(path)) from err

        digest = hashlib.md5(usedforsecurity=False) if options.verify_checksum else None
        written = 0
        try:
            with handle:
                stream = result.stream(min_chunk_size=options.chunk_size)
                async for chunk in self._iter_chunks(stream, remote):
                    if token.cancelled:
                        raise TransferCancelledError(remote.full_path)
                    handle.write(chunk)
                    if digest is not None:
                        digest.update(chunk)
                    written += len(chunk)
                    progress(len(chunk))

            if token.cancelled:
                raise TransferCancelledError(remote.full_path)

            # Verify file integrity - actual size must match expected
            if written != properties.length:
                raise RemoteTransferError(
                    f"Size mismatch: expected {properties.length} bytes, got {written} bytes",
                    remote_path=remote.full_path,
                )
            if digest is not None:
                self._verify_checksum(remote, properties, digest.digest())
        except BaseException:
            _remove_partial_file(path)
            raise

        if options.preserve_extended_attributes:
            _apply_file_attributes(path, properties)
        return written

    async def _iter_chunks(self, stream: Any, remote: RemoteFile) -> AsyncIterator[Any]:
        iterator = aiter(stream)
        while True:
            try:
                chunk = await anext(iterator)
            except StopAsyncIteration:
                return
            except REMOTE_ERRORS as err:
                raise translate_remote_error(err, remote.full_path) from err
            yield chunk

    def _verify_checksum(
        self, remote: RemoteFile, properties: FileProperties, actual: bytes
    ) -> None:
        stored = properties.expected_md5
        if not stored:
            logger.warning("No stored MD5 for %s; skipping checksum validation", remote.full_path)
            return
        if decode_md5(stored) != actual:
            raise ChecksumMismatchError(remote.full_path, stored, _encode_md5(actual))
        logger.debug("MD5 verified for %s", remote.full_path)


def _remove_partial_file(path: Path) -> None:
    try:
        if path.exists():
            path.unlink()
    except OSError as err:
        logger.warning("Could not remove partial file %s: %s", path, err)


def _apply_file_attributes(path: Path, properties: FileProperties) -> None:
    """Copy last-modified time and the read-only flag onto the local file."""
    if properties.last_modified is not None:
        timestamp = properties.last_modified.timestamp()
        os.utime(path, (timestamp, timestamp))
    if properties.metadata.get(READ_ONLY_METADATA_KEY, "").lower() == "true":
        mode = path.stat().st_mode
        path.chmod(mode & ~(stat.S_IWUSR | stat.S_IWGRP | stat.S_IWOTH))


# =============================================================================
# Transfer Executor
# =============================================================================


def _finish(
    record: ProgressRecord, sink: ProgressSink, state: TransferState, status: str
) -> None:
    if not record.state.is_terminal:
        record.advance(state, status)
        sink.update(record)


async def execute_transfer(
    remote: RemoteFile,
    path: Path,
    options: TransferOptions,
    *,
    token: CancellationToken,
    sink: ProgressSink | None = None,
    engine: TransferEngine | None = None,
    activity_id: int | None = None,
) -> ProgressRecord:
    """Fetch attributes, then download remote to path, reporting progress.

    Args:
        remote: Resolved remote file.
        path: Planned local target file.
        options: Transfer options.
        token: Cancellation token spanning attribute fetch and transfer.
        sink: Progress reporting sink (default: discard).
        engine: Transfer engine (default: TransferEngine()).
        activity_id: Progress activity id (default: next free id).

    Returns:
        The ProgressRecord in state COMPLETED.

    Raises:
        FileShareError: Any failure kind; the record is terminal before it is raised.
    """
    sink = sink if sink is not None else NullProgressSink()
    engine = engine if engine is not None else TransferEngine()
    record = ProgressRecord(
        activity_id=activity_id if activity_id is not None else next_activity_id(),
        activity=f"Download file {remote.full_path} to {path}",
    )

    task = asyncio.current_task()
    loop = asyncio.get_running_loop()

    def _cancel_if_running() -> None:
        if task is not None and not record.state.is_terminal:
            task.cancel()

    unregister = token.register(lambda: loop.call_soon_threadsafe(_cancel_if_running))
    try:
        if token.cancelled:
            raise TransferCancelledError(remote.full_path)
        properties = await remote.fetch_attributes()
        record.total_bytes = properties.length
        record.advance(TransferState.ATTRIBUTES_FETCHED, PREPARING_STATUS)
        sink.update(record)

        def on_progress(count: int) -> None:
            record.record_bytes(count)
            sink.update(record)

        record.advance(TransferState.TRANSFERRING, "Downloading")
        sink.update(record)
        await engine.download(remote, path, options, token, on_progress)

        record.advance(TransferState.COMPLETED, "Download completed")
        sink.update(record)
        logger.debug("Downloaded %s (%d bytes)", remote.full_path, record.bytes_transferred)
        return record
    except asyncio.CancelledError:
        _finish(record, sink, TransferState.CANCELLED, "Cancelled")
        if not token.cancelled or task is None:
            raise
        task.uncancel()
        raise TransferCancelledError(remote.full_path) from None
    except TransferCancelledError:
        _finish(record, sink, TransferState.CANCELLED, "Cancelled")
        raise
    except FileShareError as err:
        _finish(record, sink, TransferState.FAILED, err.message)
        raise
    except Exception as err:
        _finish(record, sink, TransferState.FAILED, str(err))
        raise
    finally:
        unregister()
