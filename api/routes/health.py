"""
Health check endpoint with job manager status
"""

from fastapi import APIRouter, Request
from core.config import settings
from schemas.api import HealthResponse
import logging

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request):
    """
    Health check endpoint.

    Reports degraded when the job manager is not initialized.
    """
    manager = getattr(request.app.state, "job_manager", None)
    scheduler = getattr(request.app.state, "scheduler", None)

    if manager is None:
        logger.error("Health check: job manager not initialized")
        return HealthResponse(
            status="degraded",
            environment=settings.ENVIRONMENT,
            job_store=settings.JOB_STORE,
            max_concurrent_jobs=settings.MAX_CONCURRENT_JOBS,
        )

    return HealthResponse(
        status="healthy",
        environment=settings.ENVIRONMENT,
        job_store=settings.JOB_STORE,
        total_jobs=len(manager.list_jobs()),
        running_jobs=manager.running_count,
        max_concurrent_jobs=manager.max_concurrent_jobs,
        scheduler_running=bool(scheduler and scheduler.scheduler.running),
    )
