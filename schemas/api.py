"""
Pydantic schemas for API request/response models
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import Field
from schemas.base import CamelModel
from schemas.job import Job, utcnow
from schemas.monitoring import Alert, ETLStatusSummary, QualityMetricsSummary
from schemas.quality import DataQualityRules


# ============================================================================
# Health Check Schemas
# ============================================================================

class HealthResponse(CamelModel):
    """Health check response model"""
    status: str = Field(..., description="Overall service status: healthy or degraded")
    timestamp: datetime = Field(default_factory=utcnow)
    environment: str
    job_store: str
    total_jobs: int = 0
    running_jobs: int = 0
    max_concurrent_jobs: int
    scheduler_running: bool = False


# ============================================================================
# Job Schemas
# ============================================================================

class JobListResponse(CamelModel):
    total: int
    jobs: List[Job] = Field(default_factory=list)


# ============================================================================
# Quality Schemas
# ============================================================================

class QualityAssessRequest(CamelModel):
    """Standalone assessment: records plus optional quality rules"""
    data: List[Dict[str, Any]]
    rules: Optional[DataQualityRules] = None


# ============================================================================
# Statistics Schemas
# ============================================================================

class StatsResponse(CamelModel):
    etl_status: ETLStatusSummary
    quality_metrics: QualityMetricsSummary
    recent_alerts: List[Alert] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=utcnow)
