"""
FastAPI dependencies: shared service objects and API key check
"""

from typing import Optional
from fastapi import Header, HTTPException, Request, status
from core.config import settings
from ingestion.job_manager import ETLJobManager
from ingestion.monitoring import ETLMonitor


def get_job_manager(request: Request) -> ETLJobManager:
    return request.app.state.job_manager


def get_monitor(request: Request) -> ETLMonitor:
    return request.app.state.monitor


async def verify_api_key(x_api_key: Optional[str] = Header(None)) -> None:
    """Require ``X-API-Key`` when an API key is configured"""
    if settings.API_KEY and x_api_key != settings.API_KEY:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing API key",
        )
