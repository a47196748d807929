"""
ETL job lifecycle endpoints
"""

import asyncio
from typing import Any, Dict, Optional
from fastapi import APIRouter, Depends, Query, Request, status
from api.dependencies import get_job_manager, verify_api_key
from core.exceptions import JobExecutionFailed, JobNotFound
from ingestion.job_manager import ETLJobManager
from models.base import JobStatus
from schemas.api import JobListResponse
from schemas.job import Job
import logging

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/jobs", tags=["Jobs"], dependencies=[Depends(verify_api_key)])


@router.post("", response_model=Job, status_code=status.HTTP_201_CREATED)
async def create_job(
    definition: Dict[str, Any],
    manager: ETLJobManager = Depends(get_job_manager)
):
    """
    Create a pending job from a job definition.

    The definition is validated by the job manager; violations return 422
    with the offending fields.
    """
    return await manager.create_job(definition)


@router.get("", response_model=JobListResponse)
async def list_jobs(
    status_filter: Optional[JobStatus] = Query(None, alias="status", description="Filter by job status"),
    manager: ETLJobManager = Depends(get_job_manager)
):
    jobs = manager.list_jobs(status_filter)
    return JobListResponse(total=len(jobs), jobs=jobs)


@router.get("/{job_id}", response_model=Job)
async def get_job(job_id: str, manager: ETLJobManager = Depends(get_job_manager)):
    job = manager.get_job(job_id)
    if job is None:
        raise JobNotFound(f"Job not found: {job_id}", context={"job_id": job_id})
    return job


@router.post("/{job_id}/execute", response_model=Job)
async def execute_job(
    job_id: str,
    request: Request,
    wait: bool = Query(True, description="Wait for the pipeline to finish"),
    manager: ETLJobManager = Depends(get_job_manager)
):
    """
    Execute a pending job.

    With ``wait=false`` the pipeline runs in the background and the job is
    returned as soon as it is running. Admission errors (not found, already
    running, concurrency limit) are reported either way.
    """
    if wait:
        return await manager.execute_job(job_id)

    task = asyncio.create_task(manager.execute_job(job_id))
    # Admission checks complete before the task's first await
    await asyncio.sleep(0)
    if task.done() and not task.cancelled():
        error = task.exception()
        if error is not None and not isinstance(error, JobExecutionFailed):
            raise error

    tasks = request.app.state.background_tasks
    tasks.add(task)
    task.add_done_callback(_finish_background_execution(tasks, job_id))
    return manager.get_job(job_id)


def _finish_background_execution(tasks, job_id: str):
    def done(task: asyncio.Task) -> None:
        tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if isinstance(error, JobExecutionFailed):
            logger.error(f"Background execution of {job_id} failed: {error.message}")
        elif error is not None:
            logger.error(f"Background execution of {job_id} raised {type(error).__name__}: {error}")
    return done


@router.post("/{job_id}/pause", response_model=Job)
async def pause_job(job_id: str, manager: ETLJobManager = Depends(get_job_manager)):
    return await manager.pause_job(job_id)


@router.post("/{job_id}/resume", response_model=Job)
async def resume_job(job_id: str, manager: ETLJobManager = Depends(get_job_manager)):
    return await manager.resume_job(job_id)


@router.post("/{job_id}/cancel", response_model=Job)
async def cancel_job(job_id: str, manager: ETLJobManager = Depends(get_job_manager)):
    return await manager.cancel_job(job_id)
