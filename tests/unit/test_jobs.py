"""Unit tests for the background job registry."""

from __future__ import annotations

import asyncio
import threading
from collections.abc import Iterator

import pytest

from fileshare_cli.errors import RemoteTransferError, TransferCancelledError
from fileshare_cli.jobs import JobRegistry, JobState, get_job_registry


@pytest.fixture
def registry() -> Iterator[JobRegistry]:
    jobs = JobRegistry(max_workers=2)
    yield jobs
    jobs.shutdown()


class TestJobRegistry:
    """Tests for job lifecycle."""

    @pytest.mark.unit
    def test_register_does_not_start(self, registry: JobRegistry) -> None:
        job = registry.register("Download docs/a.pdf")

        assert job.state is JobState.NOT_STARTED
        assert registry.get(job.job_id) is job
        assert registry.list_jobs() == [job]

    @pytest.mark.unit
    def test_ids_are_unique(self, registry: JobRegistry) -> None:
        first = registry.register("one")
        second = registry.register("two")

        assert first.job_id != second.job_id

    @pytest.mark.unit
    def test_completed_job_keeps_result(self, registry: JobRegistry) -> None:
        async def work() -> str:
            await asyncio.sleep(0)
            return "done"

        job = registry.register("work")
        registry.start(job, work)
        registry.wait(job.job_id, timeout=5)

        assert job.state is JobState.COMPLETED
        assert job.finished
        assert job.result == "done"
        assert job.error is None

    @pytest.mark.unit
    def test_failed_job_keeps_error(self, registry: JobRegistry) -> None:
        async def work() -> None:
            raise RemoteTransferError("boom", remote_path="docs/a.pdf")

        job = registry.register("work")
        registry.start(job, work)
        registry.wait(job.job_id, timeout=5)

        assert job.state is JobState.FAILED
        assert isinstance(job.error, RemoteTransferError)

    @pytest.mark.unit
    def test_cancelled_transfer_stops_job(self, registry: JobRegistry) -> None:
        async def work() -> None:
            raise TransferCancelledError("docs/a.pdf")

        job = registry.register("work")
        registry.start(job, work)
        registry.wait(job.job_id, timeout=5)

        assert job.state is JobState.STOPPED

    @pytest.mark.unit
    def test_cancel_trips_running_job_token(self, registry: JobRegistry) -> None:
        started = threading.Event()

        async def work() -> None:
            started.set()
            while not job.token.cancelled:
                await asyncio.sleep(0.01)
            raise TransferCancelledError("docs/a.pdf")

        job = registry.register("work")
        registry.start(job, work)
        assert started.wait(timeout=5)

        registry.cancel(job.job_id)
        registry.wait(job.job_id, timeout=5)

        assert job.token.cancelled
        assert job.state is JobState.STOPPED

    @pytest.mark.unit
    def test_cancel_unstarted_job(self, registry: JobRegistry) -> None:
        job = registry.register("never run")

        registry.cancel(job.job_id)

        assert job.state is JobState.STOPPED
        assert job.token.cancelled

    @pytest.mark.unit
    def test_start_twice_rejected(self, registry: JobRegistry) -> None:
        async def work() -> None:
            return None

        job = registry.register("work")
        registry.start(job, work)

        with pytest.raises(ValueError):
            registry.start(job, work)

    @pytest.mark.unit
    def test_remove_finished_job(self, registry: JobRegistry) -> None:
        async def work() -> None:
            return None

        job = registry.register("work")
        registry.start(job, work)
        registry.wait(job.job_id, timeout=5)
        registry.remove(job.job_id)

        with pytest.raises(KeyError):
            registry.get(job.job_id)

    @pytest.mark.unit
    def test_remove_running_job_rejected(self, registry: JobRegistry) -> None:
        release = threading.Event()

        async def work() -> None:
            while not release.is_set():
                await asyncio.sleep(0.01)

        job = registry.register("work")
        registry.start(job, work)
        try:
            with pytest.raises(ValueError):
                registry.remove(job.job_id)
        finally:
            release.set()
            registry.wait(job.job_id, timeout=5)

    @pytest.mark.unit
    def test_unknown_job(self, registry: JobRegistry) -> None:
        with pytest.raises(KeyError):
            registry.get(999)

    @pytest.mark.unit
    def test_process_registry_is_shared(self) -> None:
        assert get_job_registry() is get_job_registry()
