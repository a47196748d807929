"""
Pydantic schemas for job definitions and the job entity
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from pydantic import Field, field_validator
from models.base import JobStatus, SourceKind, TargetKind
from schemas.base import CamelModel
from schemas.quality import DataQualityRules, QualityReport, SchemaConsistencyResult
from schemas.transform import FieldType


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SourceSpec(CamelModel):
    """Where a job reads from"""
    type: SourceKind
    config: Dict[str, Any] = Field(default_factory=dict)
    expected_schema: Optional[Dict[str, FieldType]] = Field(None, alias="schema")


class TargetSpec(CamelModel):
    """Where a job writes to"""
    type: TargetKind
    config: Dict[str, Any] = Field(default_factory=dict)


class JobDefinition(CamelModel):
    """
    Caller-supplied job definition.

    Ensures:
    - Name is present and 1-100 characters after trimming
    - Description is at most 500 characters
    - Source and target name a known kind
    - Quality rules are well formed

    ``transformations`` keeps insertion order; each key is a transformation
    kind applied in that order.
    """

    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    source: SourceSpec
    target: TargetSpec
    transformations: Dict[str, Any] = Field(default_factory=dict)
    schedule: Optional[Dict[str, Any]] = None
    data_quality_rules: Optional[DataQualityRules] = None

    @field_validator("name", "description", mode="before")
    @classmethod
    def strip_text(cls, v):
        """Trim surrounding whitespace"""
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("transformations", mode="before")
    @classmethod
    def default_transformations(cls, v):
        if v is None:
            return {}
        return v


class JobMetrics(CamelModel):
    total_records: int = 0
    processed_records: int = 0
    error_records: int = 0
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    duration: Optional[float] = None  # seconds


class JobResult(CamelModel):
    extracted_count: int = 0
    transformed_count: int = 0
    loaded_count: int = 0
    errors: List[str] = Field(default_factory=list)
    quality_report: Optional[QualityReport] = None
    schema_check: Optional[SchemaConsistencyResult] = None


class Job(JobDefinition):
    """
    One ETL execution unit with its lifecycle state.

    Owned by ``ETLJobManager``; mutated only by its lifecycle operations.
    """

    id: str
    status: JobStatus = JobStatus.PENDING
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    metrics: JobMetrics = Field(default_factory=JobMetrics)
    result: Optional[JobResult] = None
    error: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in (JobStatus.COMPLETED, JobStatus.FAILED)

    def touch(self) -> None:
        self.updated_at = utcnow()

    def mark_finished(self) -> None:
        """Record end time and duration for the current run"""
        self.metrics.end_time = utcnow()
        if self.metrics.start_time:
            self.metrics.duration = (self.metrics.end_time - self.metrics.start_time).total_seconds()
        self.updated_at = self.metrics.end_time
