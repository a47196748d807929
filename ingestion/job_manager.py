"""
ETL job manager: job lifecycle, concurrency cap, persistence and events.

State machine:

    pending ──execute──▶ running ──▶ completed
       ▲                   │  └────▶ failed
       │                 pause
     resume                ▼
       └────────────── paused

    cancel: pending | running | paused ──▶ failed ("Cancelled by user")

Pause and cancel of a running job are cooperative: the current stage
finishes and the pipeline stops at the next stage boundary.
"""

import asyncio
import uuid
from typing import Any, Dict, List, Mapping, Optional, Set, Union
from pydantic import ValidationError as PydanticValidationError
from core.config import settings
from core.database import create_engine
from core.exceptions import (
    ConcurrencyLimitExceeded,
    ETLException,
    InvalidJobTransition,
    JobAlreadyRunning,
    JobExecutionFailed,
    JobInterrupted,
    JobNotFound,
    ValidationError,
)
from ingestion.events import EventBus, JobEventType, Subscriber
from ingestion.runner import ETLRunner
from models.base import JobStatus
from repositories.base import InMemoryJobRepository, JobRepository, newest_first
from repositories.file_repository import FileJobRepository
from repositories.sql_repository import SQLJobRepository
from schemas.job import Job, JobDefinition, JobMetrics, utcnow
import logging

logger = logging.getLogger(__name__)

CANCELLED_MESSAGE = "Cancelled by user"
RESTART_MESSAGE = "Interrupted by process restart"


def _field_path(loc) -> str:
    return ".".join(str(part) for part in loc) or "__root__"


class ETLJobManager:
    """
    Owns every job and is the only writer of job state.

    Jobs are cached in memory and written through to the repository after
    every transition. At most ``max_concurrent_jobs`` jobs execute at once;
    requests over the cap fail fast with ConcurrencyLimitExceeded.
    """

    def __init__(
        self,
        repository: Optional[JobRepository] = None,
        runner: Optional[ETLRunner] = None,
        max_concurrent_jobs: Optional[int] = None,
        event_bus: Optional[EventBus] = None,
    ):
        self.repository = repository or InMemoryJobRepository()
        self.runner = runner or ETLRunner()
        self.max_concurrent_jobs = max_concurrent_jobs or settings.MAX_CONCURRENT_JOBS
        self.event_bus = event_bus or EventBus()

        self._jobs: Dict[str, Job] = {}
        self._in_flight: Set[str] = set()

    async def initialize(self) -> None:
        """
        Prepare the repository and reload stored jobs.

        A job stored as running was cut off by a restart; it is marked failed.
        """
        await self.repository.initialize()

        for job in await self.repository.list():
            if job.status == JobStatus.RUNNING:
                job.status = JobStatus.FAILED
                job.error = RESTART_MESSAGE
                job.mark_finished()
                await self.repository.put(job)
                logger.warning(f"Job {job.id} was running at shutdown; marked failed")
            self._jobs[job.id] = job

        logger.info(f"ETL job manager initialized with {len(self._jobs)} jobs")

    @property
    def running_count(self) -> int:
        return len(self._in_flight)

    def subscribe(self, callback: Subscriber):
        """Receive every lifecycle event in order; returns an unsubscribe function"""
        return self.event_bus.subscribe(callback)

    def events(self, maxsize: int = 0) -> asyncio.Queue:
        """
        Queue receiving every subsequent lifecycle event.

        Release it with ``event_bus.close_queue`` when done polling.
        """
        return self.event_bus.queue(maxsize)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def create_job(self, definition: Union[JobDefinition, Mapping[str, Any]]) -> Job:
        """
        Validate a job definition and store it as a pending job.

        Raises:
            ValidationError: The definition is invalid; nothing is stored
        """
        try:
            definition = JobDefinition.model_validate(definition)
        except PydanticValidationError as e:
            errors = e.errors(include_url=False)
            fields = sorted({_field_path(err["loc"]) for err in errors})
            raise ValidationError(
                f"Invalid job definition: {', '.join(fields)}",
                context={"fields": fields, "errors": errors},
                original_exception=e
            )

        job = Job(
            id=f"etl_{uuid.uuid4().hex}",
            **{name: getattr(definition, name) for name in JobDefinition.model_fields},
        )

        await self.repository.put(job)
        self._jobs[job.id] = job
        await self.event_bus.publish(JobEventType.CREATED, job)

        logger.info(f"ETL job created: {job.name} ({job.id})")
        return job.model_copy(deep=True)

    async def execute_job(self, job_id: str) -> Job:
        """
        Run a pending job's pipeline to completion.

        Returns:
            The job after the run (completed, or paused/failed when a pause or
            cancel stopped it)

        Raises:
            JobNotFound: Unknown id
            JobAlreadyRunning: The job is running or already executing
            ConcurrencyLimitExceeded: The cap is reached
            InvalidJobTransition: The job is not pending
            JobExecutionFailed: A stage failed; the failure is recorded first
        """
        # Every check and the in-flight registration happen before the first await
        job = self._require(job_id)
        if job.status == JobStatus.RUNNING or job_id in self._in_flight:
            raise JobAlreadyRunning(
                f"Job already running: {job_id}",
                context={"job_id": job_id}
            )
        if len(self._in_flight) >= self.max_concurrent_jobs:
            raise ConcurrencyLimitExceeded(
                "Maximum concurrent jobs limit reached",
                context={"job_id": job_id, "max_concurrent_jobs": self.max_concurrent_jobs}
            )
        if job.status != JobStatus.PENDING:
            raise self._invalid_transition(job, "execute")

        self._in_flight.add(job_id)
        try:
            job.status = JobStatus.RUNNING
            job.metrics = JobMetrics(start_time=utcnow())
            job.result = None
            job.error = None
            job.touch()

            await self.repository.put(job)
            await self.event_bus.publish(JobEventType.STARTED, job)
            logger.info(f"Starting ETL job: {job.name} ({job_id})")

            try:
                result = await self.runner.run(
                    job, should_continue=lambda: job.status == JobStatus.RUNNING
                )
            except JobInterrupted:
                logger.info(f"ETL job {job_id} stopped at a stage boundary ({job.status.value})")
                return job.model_copy(deep=True)
            except Exception as e:
                if job.status == JobStatus.FAILED:
                    logger.warning(f"Cancelled job {job_id} also failed in its last stage: {e}")
                    return job.model_copy(deep=True)
                await self._record_failure(job, e)
                message = e.message if isinstance(e, ETLException) else str(e)
                raise JobExecutionFailed(
                    f"Job {job_id} failed: {message}",
                    context={"job_id": job_id, "stage_error": type(e).__name__},
                    original_exception=e
                )

            job.result = result
            if job.status == JobStatus.RUNNING:
                job.status = JobStatus.COMPLETED
                job.mark_finished()
                await self.repository.put(job)
                await self.event_bus.publish(JobEventType.COMPLETED, job)
                logger.info(f"ETL job completed: {job.name} ({job_id})")
            else:
                # Paused or cancelled during the final stage
                job.touch()
                await self.repository.put(job)
                logger.info(f"ETL job {job_id} finished its last stage while {job.status.value}")

            return job.model_copy(deep=True)
        finally:
            self._in_flight.discard(job_id)

    async def _record_failure(self, job: Job, error: Exception) -> None:
        job.status = JobStatus.FAILED
        job.error = error.message if isinstance(error, ETLException) else str(error)
        job.mark_finished()

        await self.repository.put(job)
        await self.event_bus.publish(JobEventType.FAILED, job)
        logger.error(f"ETL job failed: {job.name} ({job.id}) - {job.error}")

    async def pause_job(self, job_id: str) -> Job:
        """Pause a running job at its next stage boundary"""
        job = self._require(job_id)
        if job.status != JobStatus.RUNNING:
            raise self._invalid_transition(job, "pause")

        job.status = JobStatus.PAUSED
        job.touch()
        await self.repository.put(job)
        await self.event_bus.publish(JobEventType.PAUSED, job)

        logger.info(f"ETL job paused: {job.name} ({job_id})")
        return job.model_copy(deep=True)

    async def resume_job(self, job_id: str) -> Job:
        """Return a paused job to pending so it can be executed again"""
        job = self._require(job_id)
        if job.status != JobStatus.PAUSED:
            raise self._invalid_transition(job, "resume")

        job.status = JobStatus.PENDING
        job.touch()
        await self.repository.put(job)
        await self.event_bus.publish(JobEventType.RESUMED, job)

        logger.info(f"ETL job resumed: {job.name} ({job_id})")
        return job.model_copy(deep=True)

    async def cancel_job(self, job_id: str) -> Job:
        """Fail a pending, running or paused job with a cancellation message"""
        job = self._require(job_id)
        if job.is_terminal:
            raise self._invalid_transition(job, "cancel")

        job.status = JobStatus.FAILED
        job.error = CANCELLED_MESSAGE
        job.mark_finished()
        await self.repository.put(job)
        await self.event_bus.publish(JobEventType.CANCELLED, job)

        logger.info(f"ETL job cancelled: {job.name} ({job_id})")
        return job.model_copy(deep=True)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_job(self, job_id: str) -> Optional[Job]:
        job = self._jobs.get(job_id)
        return job.model_copy(deep=True) if job else None

    def list_jobs(self, status: Optional[Union[JobStatus, str]] = None) -> List[Job]:
        """All jobs, newest first, optionally filtered by status"""
        jobs = self._jobs.values()
        if status is not None:
            status = JobStatus(status)
            jobs = [job for job in jobs if job.status == status]
        return newest_first([job.model_copy(deep=True) for job in jobs])

    def _require(self, job_id: str) -> Job:
        job = self._jobs.get(job_id)
        if job is None:
            raise JobNotFound(f"Job not found: {job_id}", context={"job_id": job_id})
        return job

    @staticmethod
    def _invalid_transition(job: Job, requested: str) -> InvalidJobTransition:
        return InvalidJobTransition(
            f"Cannot {requested} job {job.id} while {job.status.value}",
            context={"job_id": job.id, "current_status": job.status.value, "requested": requested}
        )


def build_job_manager() -> ETLJobManager:
    """Job manager wired from settings (file or database job store)"""
    if settings.JOB_STORE == "database":
        repository: JobRepository = SQLJobRepository(create_engine(settings.DATABASE_URL))
    else:
        repository = FileJobRepository(settings.DATA_PATH)

    return ETLJobManager(
        repository=repository,
        max_concurrent_jobs=settings.MAX_CONCURRENT_JOBS,
    )
