"""
Pydantic schemas for monitoring summaries, alerts and reports
"""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional
from pydantic import Field
from schemas.base import CamelModel
from schemas.job import Job, utcnow


class ETLStatusSummary(CamelModel):
    total_jobs: int
    pending_jobs: int
    running_jobs: int
    paused_jobs: int
    completed_jobs: int
    failed_jobs: int
    recent_jobs: List[Job] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=utcnow)


class MetricTrendPoint(CamelModel):
    timestamp: datetime
    score: float


class QualityMetricsSummary(CamelModel):
    """Aggregate view over the most recent saved quality reports"""
    total_reports: int
    average_quality_score: float
    trends: Dict[str, List[MetricTrendPoint]] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=utcnow)


class Alert(CamelModel):
    type: str
    severity: Literal["high", "medium", "low"]
    message: str
    job_id: Optional[str] = None
    details: Dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=utcnow)


class MonitoringUpdate(CamelModel):
    timestamp: datetime = Field(default_factory=utcnow)
    etl_status: ETLStatusSummary
    quality_metrics: QualityMetricsSummary
    alerts: List[Alert] = Field(default_factory=list)


class SystemRecommendation(CamelModel):
    category: str
    priority: Literal["high", "medium", "low"]
    message: str
    actions: List[str] = Field(default_factory=list)


class ReportSummary(CamelModel):
    total_etl_jobs: int
    successful_jobs: int
    failed_jobs: int
    average_quality_score: float
    total_quality_reports: int


class ComprehensiveReport(CamelModel):
    generated_at: datetime = Field(default_factory=utcnow)
    summary: ReportSummary
    etl_status: ETLStatusSummary
    quality_metrics: QualityMetricsSummary
    recommendations: List[SystemRecommendation] = Field(default_factory=list)
