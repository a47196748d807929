"""
ETL statistics endpoint
"""

from fastapi import APIRouter, Depends, Query, Request
from api.dependencies import get_monitor, verify_api_key
from ingestion.monitoring import ETLMonitor
from schemas.api import StatsResponse
import logging

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Statistics"], dependencies=[Depends(verify_api_key)])


@router.get("/stats", response_model=StatsResponse)
async def get_stats(
    request: Request,
    alerts: int = Query(20, ge=0, le=100, description="Number of recent alerts to return"),
    monitor: ETLMonitor = Depends(get_monitor)
):
    """
    Get ETL statistics.

    Returns:
    - Job counts per status and the most recent jobs
    - Quality score average and trends
    - Recent alerts
    """
    request_id = getattr(request.state, "request_id", None)
    logger.info(f"[{request_id}] GET /stats")

    recent_alerts = list(monitor.alerts)[-alerts:] if alerts else []
    return StatsResponse(
        etl_status=monitor.get_etl_status(),
        quality_metrics=monitor.get_quality_metrics(),
        recent_alerts=recent_alerts,
    )
