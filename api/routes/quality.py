"""
Standalone data quality endpoints
"""

from fastapi import APIRouter, Depends
from api.dependencies import get_monitor, verify_api_key
from ingestion.monitoring import ETLMonitor
from schemas.api import QualityAssessRequest
from schemas.monitoring import ComprehensiveReport, QualityMetricsSummary
from schemas.quality import QualityReport
import logging

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/quality", tags=["Quality"], dependencies=[Depends(verify_api_key)])


@router.post("/assess", response_model=QualityReport)
async def assess_quality(body: QualityAssessRequest, monitor: ETLMonitor = Depends(get_monitor)):
    """Score a record set against quality rules; the report is saved"""
    return monitor.assess_data_quality(body.data, body.rules)


@router.get("/metrics", response_model=QualityMetricsSummary)
async def quality_metrics(monitor: ETLMonitor = Depends(get_monitor)):
    """Average score and per-metric trends over the last ten reports"""
    return monitor.get_quality_metrics()


@router.post("/report", response_model=ComprehensiveReport)
async def comprehensive_report(monitor: ETLMonitor = Depends(get_monitor)):
    """Generate and save the comprehensive ETL and quality report"""
    return monitor.generate_comprehensive_report()
