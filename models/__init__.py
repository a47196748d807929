"""
SQLAlchemy ORM models and shared enums.

Models:
    base: Base declarative class and shared enums (SourceKind, TargetKind,
          JobStatus, TransformationKind, QualityMetric)
    etl_job: Durable job record used by the SQL job repository

Usage:
    from models.base import JobStatus, SourceKind
    from models.etl_job import ETLJobRecord
"""

__all__ = [
    "Base",
    "SourceKind",
    "TargetKind",
    "JobStatus",
    "TransformationKind",
    "QualityMetric",
    "ETLJobRecord",
]
