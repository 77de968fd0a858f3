"""Process-wide registry of background download jobs.

A job runs a coroutine to completion on a worker thread with its own event
loop, so the caller gets control back immediately. Every job owns a
CancellationToken; cancelling the job trips it.

Usage:
    registry = get_job_registry()
    job = registry.register("download docs/a/report.pdf")
    registry.start(job, lambda: download_file_content(request, session))
    registry.wait(job.job_id)
    registry.remove(job.job_id)
"""

from __future__ import annotations

import asyncio
import itertools
import logging
import threading
from collections.abc import Callable, Coroutine
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from fileshare_cli.cancellation import CancellationToken
from fileshare_cli.errors import TransferCancelledError

logger = logging.getLogger(__name__)

JobFactory = Callable[[], Coroutine[Any, Any, Any]]


class JobState(Enum):
    """Lifecycle of a background job."""

    NOT_STARTED = "not_started"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    STOPPED = "stopped"

    @property
    def is_finished(self) -> bool:
        return self in (JobState.COMPLETED, JobState.FAILED, JobState.STOPPED)


@dataclass
class Job:
    """Bookkeeping for one background job.

    Attributes:
        job_id: Registry-unique id.
        name: Human-readable description.
        token: Cancellation token handed to the job's coroutine.
        state: Current JobState.
        result: Return value of the coroutine once COMPLETED.
        error: Exception raised by the coroutine once FAILED or STOPPED.
    """

    job_id: int
    name: str
    token: CancellationToken = field(default_factory=CancellationToken, repr=False)
    state: JobState = JobState.NOT_STARTED
    result: Any = None
    error: BaseException | None = None
    _future: Future[None] | None = field(default=None, init=False, repr=False, compare=False)

    @property
    def finished(self) -> bool:
        return self.state.is_finished


class JobRegistry:
    """Start, poll, cancel and dispose of background jobs."""

    def __init__(self, max_workers: int = 4) -> None:
        self._executor = ThreadPoolExecutor(
            max_workers=max(1, max_workers), thread_name_prefix="fileshare-job"
        )
        self._jobs: dict[int, Job] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def register(self, name: str) -> Job:
        """Create job bookkeeping without starting any work."""
        with self._lock:
            job = Job(job_id=next(self._ids), name=name)
            self._jobs[job.job_id] = job
        logger.debug("Registered job %d: %s", job.job_id, name)
        return job

    def start(self, job: Job, factory: JobFactory) -> Job:
        """Run the coroutine built by factory on a worker thread."""
        if job.state is not JobState.NOT_STARTED:
            raise ValueError(f"Job {job.job_id} was already started")
        job.state = JobState.RUNNING
        job._future = self._executor.submit(self._run, job, factory)
        return job

    def _run(self, job: Job, factory: JobFactory) -> None:
        try:
            job.result = asyncio.run(factory())
        except TransferCancelledError as err:
            job.error = err
            job.state = JobState.STOPPED
        except Exception as err:
            logger.debug("Job %d failed: %s", job.job_id, err)
            job.error = err
            job.state = JobState.FAILED
        else:
            job.state = JobState.COMPLETED
        logger.debug("Job %d finished: %s", job.job_id, job.state.value)

    def get(self, job_id: int) -> Job:
        """Look up a job.

        Raises:
            KeyError: If no job has that id.
        """
        with self._lock:
            return self._jobs[job_id]

    def list_jobs(self) -> list[Job]:
        with self._lock:
            return list(self._jobs.values())

    def wait(self, job_id: int, timeout: float | None = None) -> Job:
        """Block until the job finishes or timeout elapses."""
        job = self.get(job_id)
        if job._future is not None:
            try:
                job._future.result(timeout=timeout)
            except FutureTimeoutError:
                pass
        return job

    def cancel(self, job_id: int) -> Job:
        """Trip the job's token; a job that has not begun running never starts."""
        job = self.get(job_id)
        job.token.cancel()
        if job._future is not None and job._future.cancel():
            job.state = JobState.STOPPED
        elif job.state is JobState.NOT_STARTED:
            job.state = JobState.STOPPED
        return job

    def remove(self, job_id: int) -> None:
        """Dispose of a finished job.

        Raises:
            ValueError: If the job is still running.
        """
        with self._lock:
            job = self._jobs[job_id]
            if job.state is JobState.RUNNING:
                raise ValueError(f"Job {job_id} is still running")
            del self._jobs[job_id]

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)


_registry: JobRegistry | None = None
_registry_lock = threading.Lock()


def get_job_registry() -> JobRegistry:
    """Return the process-wide job registry, creating it on first use."""
    global _registry
    with _registry_lock:
        if _registry is None:
            _registry = JobRegistry()
        return _registry
