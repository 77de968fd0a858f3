"""Per-download progress record and reporting sinks.

One ProgressRecord exists per invocation. Only the transfer executor mutates
it; sinks only read it. Its state moves strictly forward:

    PENDING -> ATTRIBUTES_FETCHED -> TRANSFERRING -> COMPLETED | FAILED | CANCELLED

FAILED and CANCELLED may also be entered from PENDING or ATTRIBUTES_FETCHED.
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Protocol, runtime_checkable

from fileshare_cli.errors import InvalidStateTransitionError
from fileshare_cli.output import detail, error, success

logger = logging.getLogger(__name__)

_activity_ids = itertools.count(1)


def next_activity_id() -> int:
    """Allocate a process-unique progress activity id."""
    return next(_activity_ids)


class TransferState(Enum):
    """State of a single file transfer.

    States:
        PENDING: Nothing has been requested from the service yet.
        ATTRIBUTES_FETCHED: Size and metadata are known.
        TRANSFERRING: Bytes are being streamed to the target file.
        COMPLETED: All bytes written (and checksum verified, if requested).
        FAILED: The transfer stopped with an error.
        CANCELLED: The cancellation token was tripped.
    """

    PENDING = "pending"
    ATTRIBUTES_FETCHED = "attributes_fetched"
    TRANSFERRING = "transferring"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_STATES


_TERMINAL_STATES = frozenset(
    {TransferState.COMPLETED, TransferState.FAILED, TransferState.CANCELLED}
)

_ALLOWED_TRANSITIONS: dict[TransferState, frozenset[TransferState]] = {
    TransferState.PENDING: frozenset(
        {TransferState.ATTRIBUTES_FETCHED, TransferState.FAILED, TransferState.CANCELLED}
    ),
    TransferState.ATTRIBUTES_FETCHED: frozenset(
        {TransferState.TRANSFERRING, TransferState.FAILED, TransferState.CANCELLED}
    ),
    TransferState.TRANSFERRING: _TERMINAL_STATES,
    TransferState.COMPLETED: frozenset(),
    TransferState.FAILED: frozenset(),
    TransferState.CANCELLED: frozenset(),
}

PREPARING_STATUS = "Preparing to download file"


@dataclass
class ProgressRecord:
    """Mutable progress of one download.

    Attributes:
        activity_id: Process-unique id of this progress activity.
        activity: What is being transferred (source and destination).
        status_description: Current human-readable status.
        state: Current TransferState.
        bytes_transferred: Bytes written to the target so far.
        total_bytes: Expected size from the fetched attributes.
    """

    activity_id: int
    activity: str
    status_description: str = PREPARING_STATUS
    state: TransferState = TransferState.PENDING
    bytes_transferred: int = 0
    total_bytes: int = 0

    @property
    def percent_complete(self) -> int:
        if self.total_bytes <= 0:
            return 100 if self.state is TransferState.COMPLETED else 0
        return min(100, self.bytes_transferred * 100 // self.total_bytes)

    def advance(self, state: TransferState, status_description: str | None = None) -> None:
        """Move to a later state.

        Raises:
            InvalidStateTransitionError: If state is not reachable from the current one.
        """
        if state not in _ALLOWED_TRANSITIONS[self.state]:
            raise InvalidStateTransitionError(self.state.value, state.value)
        logger.debug("Activity %d: %s -> %s", self.activity_id, self.state.value, state.value)
        self.state = state
        if status_description is not None:
            self.status_description = status_description

    def record_bytes(self, count: int) -> None:
        self.bytes_transferred += count
        self.status_description = (
            f"Transferred {self.bytes_transferred} of {self.total_bytes} bytes"
        )


@runtime_checkable
class ProgressSink(Protocol):
    """Receives the progress record whenever it changes."""

    def update(self, record: ProgressRecord) -> None:
        """Report the current state of record. Must not mutate it."""
        ...


class NullProgressSink:
    """Sink that ignores all updates."""

    def update(self, record: ProgressRecord) -> None:
        return None


class OutputProgressSink:
    """Report progress through the standard terminal output helpers.

    Byte progress is printed at most once per ``step`` percent.
    """

    def __init__(self, step: int = 10) -> None:
        self._step = max(1, step)
        self._last_reported: dict[int, int] = {}

    def update(self, record: ProgressRecord) -> None:
        if record.state is TransferState.COMPLETED:
            success(f"{record.activity} ({record.bytes_transferred} bytes)")
        elif record.state in (TransferState.FAILED, TransferState.CANCELLED):
            error(f"{record.activity}: {record.status_description}")
        elif record.state is TransferState.TRANSFERRING:
            percent = record.percent_complete
            last = self._last_reported.get(record.activity_id, -self._step)
            if percent - last >= self._step:
                self._last_reported[record.activity_id] = percent
                detail(f"{percent:3d}% {record.status_description}")
        else:
            detail(record.status_description)
