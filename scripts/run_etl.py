"""
Create and execute ETL jobs from job definition JSON files.

Usage:
    python scripts/run_etl.py jobs/orders.json [jobs/customers.json ...]
"""

import asyncio
import json
import sys
import os
import logging
from pathlib import Path

# Add current directory to path to allow imports from core, models, etc.
sys.path.append(os.getcwd())

from core.exceptions import ETLException
from core.logging import setup_logging
from ingestion.job_manager import build_job_manager
from ingestion.monitoring import ETLMonitor

setup_logging()
logger = logging.getLogger(__name__)


async def run_etl(paths):
    """Run one job per definition file; returns the number of failed jobs"""
    manager = build_job_manager()
    await manager.initialize()

    monitor = ETLMonitor(manager)
    monitor.initialize()
    monitor.attach()

    failures = 0
    for path in paths:
        try:
            definition = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.error(f"Cannot read job definition {path}: {e}")
            failures += 1
            continue

        try:
            job = await manager.create_job(definition)
            job = await manager.execute_job(job.id)
        except ETLException as e:
            logger.error(f"ETL failed for {path}: {e.message}")
            failures += 1
            continue

        if job.result is None:
            logger.info(f"ETL job {job.name} ended as {job.status.value}")
            continue

        report = job.result.quality_report
        logger.info(
            f"ETL completed for {job.name}: "
            f"extracted={job.result.extracted_count}, "
            f"loaded={job.result.loaded_count}, "
            f"errors={job.metrics.error_records}, "
            f"quality={report.overall_score:.3f}"
        )

    return failures


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(2)

    failed = asyncio.run(run_etl(sys.argv[1:]))
    sys.exit(1 if failed else 0)
