# ============================================================================
# File: ingestion/runner.py
# Description: Single-job ETL pipeline with stage-level error wrapping
# ============================================================================
"""
ETL Runner - runs one job's Extract → Transform → Quality → Load pipeline.

Stages run sequentially. Each stage's failure is wrapped in the matching
ETLException subclass so the manager can record it on the job. Between
stages the runner asks ``should_continue``; a False answer (pause or cancel)
stops the pipeline with JobInterrupted.
"""

from typing import Callable, Optional
import logging

from ingestion.extractors.registry import DataExtractor
from ingestion.transformers.transformer import DataTransformer
from ingestion.loaders.registry import DataLoader
from quality.checker import DataQualityChecker
from schemas.job import Job, JobResult
from core.exceptions import (
    ExtractionError,
    TransformationError,
    QualityCheckError,
    LoadError,
    JobInterrupted,
)

logger = logging.getLogger(__name__)


def _always() -> bool:
    return True


class ETLRunner:
    """
    ETL pipeline for one job.

    Responsibilities:
    - Orchestrate Extract → Transform → Quality → Load
    - Record extraction and load counts on the job metrics
    - Attach the schema check and quality report to the result
    - Stop at stage boundaries when asked to
    """

    def __init__(
        self,
        extractor: Optional[DataExtractor] = None,
        transformer: Optional[DataTransformer] = None,
        quality_checker: Optional[DataQualityChecker] = None,
        loader: Optional[DataLoader] = None,
    ):
        self.extractor = extractor or DataExtractor()
        self.transformer = transformer or DataTransformer()
        self.quality_checker = quality_checker or DataQualityChecker()
        self.loader = loader or DataLoader()

    async def run(self, job: Job, should_continue: Callable[[], bool] = _always) -> JobResult:
        """
        Run the full pipeline for a job.

        Mutates ``job.metrics`` (total, processed and error record counts).

        Returns:
            JobResult with counts, load errors, quality report and schema check

        Raises:
            ExtractionError, TransformationError, QualityCheckError, LoadError:
                A stage failed
            JobInterrupted: ``should_continue`` returned False between stages
        """
        result = JobResult()

        # --------------------------------------------------
        # PHASE 1: EXTRACTION
        # --------------------------------------------------
        logger.info(f"Job {job.id}: extracting from {job.source.type.value}")

        try:
            records = await self.extractor.extract(job.source)
        except ExtractionError:
            raise
        except Exception as e:
            raise ExtractionError(
                "Unexpected error during extraction",
                context={"job_id": job.id, "source_type": job.source.type.value},
                original_exception=e
            )

        job.metrics.total_records = len(records)
        result.extracted_count = len(records)

        if job.source.expected_schema:
            result.schema_check = self.quality_checker.validate_schema_consistency(
                records, job.source.expected_schema
            )

        self._checkpoint(job, should_continue, "extract")

        # --------------------------------------------------
        # PHASE 2: TRANSFORMATION
        # --------------------------------------------------
        logger.info(f"Job {job.id}: applying {len(job.transformations)} transformations")

        try:
            records = await self.transformer.transform(records, job.transformations)
        except TransformationError:
            raise
        except Exception as e:
            raise TransformationError(
                "Unexpected error during transformation",
                context={"job_id": job.id},
                original_exception=e
            )

        result.transformed_count = len(records)
        self._checkpoint(job, should_continue, "transform")

        # --------------------------------------------------
        # PHASE 3: QUALITY CHECKS
        # --------------------------------------------------
        logger.info(f"Job {job.id}: performing data quality checks")

        try:
            result.quality_report = self.quality_checker.perform_quality_checks(
                records, job.data_quality_rules
            )
        except QualityCheckError:
            raise
        except Exception as e:
            raise QualityCheckError(
                "Unexpected error during quality checks",
                context={"job_id": job.id},
                original_exception=e
            )

        self._checkpoint(job, should_continue, "quality")

        # --------------------------------------------------
        # PHASE 4: LOAD
        # --------------------------------------------------
        logger.info(f"Job {job.id}: loading {len(records)} records to {job.target.type.value}")

        try:
            load_result = await self.loader.load(records, job.target)
        except LoadError:
            raise
        except Exception as e:
            raise LoadError(
                "Unexpected error during load",
                context={"job_id": job.id, "target_type": job.target.type.value},
                original_exception=e
            )

        job.metrics.processed_records = load_result.success_count
        job.metrics.error_records = load_result.error_count
        result.loaded_count = load_result.success_count
        result.errors = list(load_result.errors)

        logger.info(
            f"Job {job.id}: pipeline finished - Extracted: {result.extracted_count}, "
            f"Transformed: {result.transformed_count}, Loaded: {result.loaded_count}, "
            f"Failed: {load_result.error_count}"
        )
        return result

    @staticmethod
    def _checkpoint(job: Job, should_continue: Callable[[], bool], stage: str) -> None:
        if not should_continue():
            logger.info(f"Job {job.id}: stopping after {stage} stage")
            raise JobInterrupted(
                f"Job interrupted after {stage} stage",
                context={"job_id": job.id, "stage": stage}
            )
