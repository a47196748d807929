"""
ETL and data quality monitoring.

Sits beside the job manager: saves each completed job's quality report,
raises alerts for failures, low scores, anomalies and long-running jobs,
and builds status summaries and the comprehensive report.
"""

import uuid
from collections import deque
from datetime import timedelta
from typing import Any, Deque, Dict, List, Mapping, Optional, Sequence, Union
from core.config import settings
from core.exceptions import ETLException
from ingestion.events import JobEvent, JobEventType
from ingestion.extractors.base import Record
from ingestion.job_manager import ETLJobManager
from models.base import JobStatus
from quality.checker import DataQualityChecker
from quality.reports import QualityReportStore
from schemas.job import utcnow
from schemas.monitoring import (
    Alert,
    ComprehensiveReport,
    ETLStatusSummary,
    MetricTrendPoint,
    MonitoringUpdate,
    QualityMetricsSummary,
    ReportSummary,
    SystemRecommendation,
)
from schemas.quality import DataQualityRules, QualityReport, SchemaConsistencyResult
from schemas.transform import FieldType
import logging

logger = logging.getLogger(__name__)

TREND_METRICS = ("completeness", "uniqueness", "validity", "consistency", "accuracy", "timeliness")
LOW_JOB_SCORE = 0.7


class ETLMonitor:
    """
    Monitoring and reporting over an ETLJobManager.

    Call ``attach()`` once so completed jobs have their quality reports saved
    and analyzed.
    """

    def __init__(
        self,
        manager: ETLJobManager,
        report_store: Optional[QualityReportStore] = None,
        quality_checker: Optional[DataQualityChecker] = None,
        history_size: int = 100,
    ):
        self.manager = manager
        self.report_store = report_store or QualityReportStore(settings.REPORTS_PATH)
        self.quality_checker = quality_checker or DataQualityChecker()
        self.alerts: Deque[Alert] = deque(maxlen=history_size)
        self._unsubscribe = None

    def initialize(self) -> None:
        self.report_store.initialize()

    def attach(self) -> None:
        if self._unsubscribe is None:
            self._unsubscribe = self.manager.subscribe(self.handle_event)

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    async def handle_event(self, event: JobEvent) -> None:
        job = event.job
        if event.type == JobEventType.COMPLETED and job.result and job.result.quality_report:
            self.report_store.save(job.result.quality_report, job.id)
            self.analyze_quality_trends(job.result.quality_report, job.id)
        elif event.type == JobEventType.FAILED:
            logger.error(f"ETL job failed: {job.name} - {job.error}")

    # ------------------------------------------------------------------
    # Assessments
    # ------------------------------------------------------------------

    def assess_data_quality(
        self,
        records: Sequence[Record],
        rules: Union[DataQualityRules, Mapping[str, Any], None] = None,
    ) -> QualityReport:
        """Run a standalone quality assessment and save the report"""
        logger.info(f"Assessing data quality for {len(records)} records")

        report = self.quality_checker.perform_quality_checks(records, rules)
        self.report_store.save(report, f"assessment_{uuid.uuid4().hex[:12]}")

        logger.info(f"Data quality assessment completed. Score: {report.overall_score * 100:.1f}%")
        return report

    def validate_schema(
        self,
        records: Sequence[Record],
        expected_schema: Mapping[str, Union[FieldType, str]],
    ) -> SchemaConsistencyResult:
        result = self.quality_checker.validate_schema_consistency(records, expected_schema)
        if result.consistent:
            logger.info("Schema validation passed")
        return result

    def analyze_quality_trends(self, report: QualityReport, job_id: str) -> List[Alert]:
        """Alerts for one job's report: low overall score and detected anomalies"""
        alerts = []

        if report.overall_score < LOW_JOB_SCORE:
            alerts.append(Alert(
                type="low_quality_score",
                severity="medium",
                message=f"Low data quality score detected: {report.overall_score * 100:.1f}%",
                job_id=job_id,
                details={"score": report.overall_score},
            ))

        if report.anomalies:
            alerts.append(Alert(
                type="anomalies_detected",
                severity="low",
                message=f"{len(report.anomalies)} data anomalies detected",
                job_id=job_id,
                details={"anomalyCount": len(report.anomalies)},
            ))

        self._raise_alerts(alerts)
        return alerts

    # ------------------------------------------------------------------
    # Summaries
    # ------------------------------------------------------------------

    def get_etl_status(self) -> ETLStatusSummary:
        jobs = self.manager.list_jobs()
        counts = {status: 0 for status in JobStatus}
        for job in jobs:
            counts[job.status] += 1

        return ETLStatusSummary(
            total_jobs=len(jobs),
            pending_jobs=counts[JobStatus.PENDING],
            running_jobs=counts[JobStatus.RUNNING],
            paused_jobs=counts[JobStatus.PAUSED],
            completed_jobs=counts[JobStatus.COMPLETED],
            failed_jobs=counts[JobStatus.FAILED],
            recent_jobs=jobs[:10],
        )

    def get_quality_metrics(self, limit: int = 10) -> QualityMetricsSummary:
        """Average overall score and per-metric trends over the latest reports"""
        reports = self.report_store.recent(limit)
        trends: Dict[str, List[MetricTrendPoint]] = {metric: [] for metric in TREND_METRICS}

        for report in reports:
            for name, result in report.metrics.computed().items():
                trends[name].append(MetricTrendPoint(timestamp=report.timestamp, score=result.score))

        average = sum(r.overall_score for r in reports) / len(reports) if reports else 0.0
        return QualityMetricsSummary(
            total_reports=len(reports),
            average_quality_score=average,
            trends=trends,
        )

    def perform_monitoring_check(self) -> MonitoringUpdate:
        """
        Check job and quality state and raise alerts.

        Alerts: failed jobs (high), average quality below the configured
        floor (medium), jobs running longer than the configured limit
        (medium).
        """
        etl_status = self.get_etl_status()
        quality_metrics = self.get_quality_metrics()
        alerts = []

        if etl_status.failed_jobs > 0:
            alerts.append(Alert(
                type="etl_failures",
                severity="high",
                message=f"{etl_status.failed_jobs} ETL jobs have failed",
                details={"failedJobs": etl_status.failed_jobs},
            ))

        if (
            quality_metrics.total_reports > 0
            and quality_metrics.average_quality_score < settings.LOW_QUALITY_SCORE_THRESHOLD
        ):
            alerts.append(Alert(
                type="low_quality_score",
                severity="medium",
                message=f"Average data quality score is {quality_metrics.average_quality_score * 100:.1f}%",
                details={"averageQualityScore": quality_metrics.average_quality_score},
            ))

        cutoff = utcnow() - timedelta(seconds=settings.LONG_RUNNING_JOB_SECONDS)
        long_running = [
            job.id for job in self.manager.list_jobs(JobStatus.RUNNING)
            if job.metrics.start_time and job.metrics.start_time < cutoff
        ]
        if long_running:
            alerts.append(Alert(
                type="long_running_jobs",
                severity="medium",
                message=f"{len(long_running)} jobs have been running for over "
                        f"{settings.LONG_RUNNING_JOB_SECONDS // 60} minutes",
                details={"jobIds": long_running},
            ))

        self._raise_alerts(alerts)
        return MonitoringUpdate(etl_status=etl_status, quality_metrics=quality_metrics, alerts=alerts)

    def generate_system_recommendations(
        self,
        etl_status: ETLStatusSummary,
        quality_metrics: QualityMetricsSummary,
    ) -> List[SystemRecommendation]:
        recommendations = []

        if etl_status.failed_jobs > etl_status.completed_jobs * 0.1:
            recommendations.append(SystemRecommendation(
                category="ETL Performance",
                priority="high",
                message="High ETL job failure rate detected",
                actions=[
                    "Review failed job logs for common issues",
                    "Implement better error handling and retry logic",
                    "Consider resource allocation adjustments",
                ],
            ))

        if quality_metrics.average_quality_score < 0.85:
            recommendations.append(SystemRecommendation(
                category="Data Quality",
                priority="high",
                message="Data quality scores below recommended threshold",
                actions=[
                    "Implement stricter data validation rules",
                    "Review data sources for quality issues",
                    "Set up automated data quality monitoring",
                ],
            ))

        if quality_metrics.total_reports < 10:
            recommendations.append(SystemRecommendation(
                category="Monitoring",
                priority="medium",
                message="Limited data quality monitoring history",
                actions=[
                    "Increase frequency of quality assessments",
                    "Implement real-time quality monitoring",
                    "Set up quality metric alerting",
                ],
            ))

        return recommendations

    def generate_comprehensive_report(self) -> ComprehensiveReport:
        etl_status = self.get_etl_status()
        quality_metrics = self.get_quality_metrics()

        report = ComprehensiveReport(
            summary=ReportSummary(
                total_etl_jobs=etl_status.total_jobs,
                successful_jobs=etl_status.completed_jobs,
                failed_jobs=etl_status.failed_jobs,
                average_quality_score=quality_metrics.average_quality_score,
                total_quality_reports=quality_metrics.total_reports,
            ),
            etl_status=etl_status,
            quality_metrics=quality_metrics,
            recommendations=self.generate_system_recommendations(etl_status, quality_metrics),
        )
        self.report_store.save_comprehensive(report)
        return report

    async def shutdown(self) -> None:
        """Detach and cancel jobs that are still running"""
        self.detach()
        for job in self.manager.list_jobs(JobStatus.RUNNING):
            try:
                await self.manager.cancel_job(job.id)
            except ETLException as e:
                logger.error(f"Failed to cancel job {job.id}: {e.message}")

    def _raise_alerts(self, alerts: List[Alert]) -> None:
        for alert in alerts:
            logger.warning(f"Data Quality Alert [{alert.severity}]: {alert.message}")
            self.alerts.append(alert)
