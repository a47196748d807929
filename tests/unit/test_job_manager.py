"""
Unit tests for the ETL job manager lifecycle
"""

import asyncio
import json
import pytest
from core.exceptions import (
    ConcurrencyLimitExceeded,
    InvalidJobTransition,
    JobAlreadyRunning,
    JobExecutionFailed,
    JobNotFound,
    ValidationError,
)
from ingestion.events import JobEventType
from ingestion.job_manager import CANCELLED_MESSAGE, RESTART_MESSAGE, ETLJobManager
from models.base import JobStatus
from repositories.base import InMemoryJobRepository
from schemas.job import Job


@pytest.fixture
def manager():
    return ETLJobManager(repository=InMemoryJobRepository(), max_concurrent_jobs=2)


def record_events(manager):
    events = []
    manager.subscribe(lambda event: events.append(event.type))
    return events


class TestCreateJob:

    @pytest.mark.asyncio
    async def test_creates_pending_job(self, manager, job_definition):
        job = await manager.create_job(job_definition)

        assert job.id.startswith("etl_")
        assert job.status == JobStatus.PENDING
        assert job.name == "active customers"
        assert job.metrics.total_records == 0
        assert await manager.repository.get(job.id) is not None

    @pytest.mark.asyncio
    async def test_name_is_trimmed(self, manager, job_definition):
        job = await manager.create_job({**job_definition, "name": "  nightly  "})

        assert job.name == "nightly"

    @pytest.mark.asyncio
    async def test_invalid_definition_stores_nothing(self, manager, job_definition):
        definition = {**job_definition, "name": "   ", "source": {"type": "ftp"}}

        with pytest.raises(ValidationError) as exc_info:
            await manager.create_job(definition)

        assert "name" in exc_info.value.context["fields"]
        assert "source.type" in exc_info.value.context["fields"]
        assert manager.list_jobs() == []
        assert await manager.repository.list() == []

    @pytest.mark.asyncio
    async def test_returned_job_is_a_copy(self, manager, job_definition):
        job = await manager.create_job(job_definition)
        job.status = JobStatus.COMPLETED

        assert manager.get_job(job.id).status == JobStatus.PENDING


class TestExecuteJob:

    @pytest.mark.asyncio
    async def test_runs_pipeline(self, manager, job_definition, tmp_path):
        events = record_events(manager)
        job = await manager.create_job(job_definition)

        finished = await manager.execute_job(job.id)

        assert finished.status == JobStatus.COMPLETED
        assert finished.metrics.total_records == 3
        assert finished.metrics.processed_records == 2
        assert finished.metrics.error_records == 0
        assert finished.metrics.duration is not None
        assert finished.result.loaded_count == 2
        assert finished.result.quality_report.total_records == 2
        assert events == [JobEventType.CREATED, JobEventType.STARTED, JobEventType.COMPLETED]

        written = json.loads((tmp_path / "out" / "active.json").read_text())
        assert [r["id"] for r in written] == [1, 3]

    @pytest.mark.asyncio
    async def test_unknown_job(self, manager):
        with pytest.raises(JobNotFound):
            await manager.execute_job("etl_missing")

    @pytest.mark.asyncio
    async def test_stage_failure_recorded(self, manager, job_definition, tmp_path):
        events = record_events(manager)
        definition = {
            **job_definition,
            "source": {"type": "json_file", "config": {"filePath": str(tmp_path / "nope.json")}},
        }
        job = await manager.create_job(definition)

        with pytest.raises(JobExecutionFailed) as exc_info:
            await manager.execute_job(job.id)

        assert exc_info.value.context["stage_error"] == "ExtractionError"
        stored = manager.get_job(job.id)
        assert stored.status == JobStatus.FAILED
        assert stored.error
        assert stored.metrics.end_time is not None
        assert manager.running_count == 0
        assert events[-1] == JobEventType.FAILED

    @pytest.mark.asyncio
    async def test_completed_job_cannot_run_again(self, manager, job_definition):
        job = await manager.create_job(job_definition)
        await manager.execute_job(job.id)

        with pytest.raises(InvalidJobTransition):
            await manager.execute_job(job.id)

    @pytest.mark.asyncio
    async def test_simultaneous_execute_runs_once(self, gated_manager, gated_extractor, job_definition):
        job = await gated_manager.create_job(job_definition)

        first = asyncio.create_task(gated_manager.execute_job(job.id))
        await gated_extractor.started.wait()

        with pytest.raises(JobAlreadyRunning):
            await gated_manager.execute_job(job.id)

        gated_extractor.release.set()
        finished = await first
        assert finished.status == JobStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_gathered_executes_admit_one(self, gated_manager, gated_extractor, job_definition):
        job = await gated_manager.create_job(job_definition)

        tasks = [
            asyncio.create_task(gated_manager.execute_job(job.id)),
            asyncio.create_task(gated_manager.execute_job(job.id)),
        ]
        await gated_extractor.started.wait()
        gated_extractor.release.set()
        results = await asyncio.gather(*tasks, return_exceptions=True)

        completed = [r for r in results if isinstance(r, Job)]
        rejected = [r for r in results if isinstance(r, JobAlreadyRunning)]
        assert len(completed) == 1
        assert len(rejected) == 1

    @pytest.mark.asyncio
    async def test_concurrency_cap(self, gated_manager, gated_extractor, job_definition):
        manager = ETLJobManager(
            repository=InMemoryJobRepository(),
            runner=gated_manager.runner,
            max_concurrent_jobs=1,
        )
        first = await manager.create_job(job_definition)
        second = await manager.create_job(job_definition)

        running = asyncio.create_task(manager.execute_job(first.id))
        await gated_extractor.started.wait()
        assert manager.running_count == 1

        with pytest.raises(ConcurrencyLimitExceeded):
            await manager.execute_job(second.id)
        assert manager.get_job(second.id).status == JobStatus.PENDING

        gated_extractor.release.set()
        await running
        assert manager.running_count == 0

        finished = await manager.execute_job(second.id)
        assert finished.status == JobStatus.COMPLETED


class TestPauseResumeCancel:

    @pytest.mark.asyncio
    async def test_pause_stops_at_stage_boundary(self, gated_manager, gated_extractor, job_definition):
        events = record_events(gated_manager)
        job = await gated_manager.create_job(job_definition)

        running = asyncio.create_task(gated_manager.execute_job(job.id))
        await gated_extractor.started.wait()

        paused = await gated_manager.pause_job(job.id)
        assert paused.status == JobStatus.PAUSED

        gated_extractor.release.set()
        stopped = await running

        assert stopped.status == JobStatus.PAUSED
        assert stopped.result is None
        assert events == [JobEventType.CREATED, JobEventType.STARTED, JobEventType.PAUSED]

    @pytest.mark.asyncio
    async def test_resume_then_execute(self, gated_manager, gated_extractor, job_definition):
        job = await gated_manager.create_job(job_definition)
        running = asyncio.create_task(gated_manager.execute_job(job.id))
        await gated_extractor.started.wait()
        await gated_manager.pause_job(job.id)
        gated_extractor.release.set()
        await running

        resumed = await gated_manager.resume_job(job.id)
        assert resumed.status == JobStatus.PENDING

        finished = await gated_manager.execute_job(job.id)
        assert finished.status == JobStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_cancel_running_job(self, gated_manager, gated_extractor, job_definition):
        events = record_events(gated_manager)
        job = await gated_manager.create_job(job_definition)

        running = asyncio.create_task(gated_manager.execute_job(job.id))
        await gated_extractor.started.wait()

        cancelled = await gated_manager.cancel_job(job.id)
        assert cancelled.status == JobStatus.FAILED
        assert cancelled.error == CANCELLED_MESSAGE

        gated_extractor.release.set()
        stopped = await running

        assert stopped.status == JobStatus.FAILED
        assert stopped.error == CANCELLED_MESSAGE
        assert events[-1] == JobEventType.CANCELLED

    @pytest.mark.asyncio
    async def test_cancel_pending_and_paused(self, manager, job_definition):
        pending = await manager.create_job(job_definition)

        cancelled = await manager.cancel_job(pending.id)

        assert cancelled.status == JobStatus.FAILED
        with pytest.raises(InvalidJobTransition):
            await manager.cancel_job(pending.id)

    @pytest.mark.asyncio
    async def test_invalid_transitions(self, manager, job_definition):
        job = await manager.create_job(job_definition)

        with pytest.raises(InvalidJobTransition) as exc_info:
            await manager.pause_job(job.id)
        assert exc_info.value.context["current_status"] == "pending"

        with pytest.raises(InvalidJobTransition):
            await manager.resume_job(job.id)

        with pytest.raises(JobNotFound):
            await manager.cancel_job("etl_missing")


class TestQueries:

    @pytest.mark.asyncio
    async def test_list_newest_first_and_filter(self, manager, job_definition):
        first = await manager.create_job({**job_definition, "name": "first"})
        second = await manager.create_job({**job_definition, "name": "second"})
        await manager.cancel_job(first.id)

        assert [job.id for job in manager.list_jobs()] == [second.id, first.id]
        assert [job.id for job in manager.list_jobs("failed")] == [first.id]
        assert manager.list_jobs(JobStatus.COMPLETED) == []

    def test_get_missing_job(self, manager):
        assert manager.get_job("etl_missing") is None

    @pytest.mark.asyncio
    async def test_initialize_fails_interrupted_jobs(self, job_definition):
        repository = InMemoryJobRepository()
        await repository.put(Job(id="etl_stale", status=JobStatus.RUNNING, **job_definition))
        await repository.put(Job(id="etl_waiting", **job_definition))

        manager = ETLJobManager(repository=repository)
        await manager.initialize()

        stale = manager.get_job("etl_stale")
        assert stale.status == JobStatus.FAILED
        assert stale.error == RESTART_MESSAGE
        assert (await repository.get("etl_stale")).status == JobStatus.FAILED
        assert manager.get_job("etl_waiting").status == JobStatus.PENDING


class TestEventQueue:

    @pytest.mark.asyncio
    async def test_queue_receives_lifecycle_in_order(self, manager, job_definition):
        events = manager.events()
        job = await manager.create_job(job_definition)
        await manager.execute_job(job.id)

        received = []
        while not events.empty():
            received.append(events.get_nowait())

        assert [e.type for e in received] == [
            JobEventType.CREATED,
            JobEventType.STARTED,
            JobEventType.COMPLETED,
        ]
        assert received[-1].job.status == JobStatus.COMPLETED
        manager.event_bus.close_queue(events)
