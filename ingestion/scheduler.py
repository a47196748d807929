import logging
from typing import Optional
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from core.config import settings
from core.exceptions import (
    ConcurrencyLimitExceeded,
    InvalidJobTransition,
    JobAlreadyRunning,
    JobExecutionFailed,
)
from ingestion.job_manager import ETLJobManager
from ingestion.monitoring import ETLMonitor
from models.base import JobStatus

logger = logging.getLogger(__name__)


class ETLScheduler:
    """
    Periodic execution of pending jobs and monitoring checks.

    Jobs rejected by the concurrency cap stay pending for the next tick.
    """

    def __init__(
        self,
        manager: ETLJobManager,
        monitor: Optional[ETLMonitor] = None,
        interval_minutes: Optional[int] = None,
        monitoring_interval_minutes: Optional[int] = None,
    ):
        self.manager = manager
        self.monitor = monitor
        self.interval_minutes = interval_minutes or settings.SCHEDULER_INTERVAL_MINUTES
        self.monitoring_interval_minutes = (
            monitoring_interval_minutes or settings.MONITORING_INTERVAL_MINUTES
        )
        self.scheduler = AsyncIOScheduler()

    async def run_pending_jobs(self) -> int:
        """Execute pending jobs oldest first; returns how many were started"""
        pending = list(reversed(self.manager.list_jobs(JobStatus.PENDING)))
        logger.info(f"Scheduler: {len(pending)} pending jobs")

        started = 0
        for job in pending:
            try:
                await self.manager.execute_job(job.id)
                started += 1
            except ConcurrencyLimitExceeded:
                logger.info("Scheduler: concurrency limit reached, deferring remaining jobs")
                break
            except (JobAlreadyRunning, InvalidJobTransition) as e:
                logger.info(f"Scheduler: skipping job {job.id} - {e.message}")
            except JobExecutionFailed as e:
                started += 1
                logger.error(f"Scheduler: ETL job failed - {e.message}")

        return started

    async def run_monitoring_check(self) -> None:
        if self.monitor is not None:
            self.monitor.perform_monitoring_check()

    def start(self):
        """Start the scheduler"""
        self.scheduler.add_job(
            self.run_pending_jobs,
            trigger=IntervalTrigger(minutes=self.interval_minutes),
            id="etl_pending_jobs",
            replace_existing=True,
            max_instances=1,
        )
        if self.monitor is not None:
            self.scheduler.add_job(
                self.run_monitoring_check,
                trigger=IntervalTrigger(minutes=self.monitoring_interval_minutes),
                id="etl_monitoring",
                replace_existing=True,
            )
        self.scheduler.start()
        logger.info("ETL Scheduler started")

    def stop(self):
        if self.scheduler.running:
            self.scheduler.shutdown()
        logger.info("ETL Scheduler stopped")
