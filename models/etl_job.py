from sqlalchemy import Column, String, DateTime, JSON, Index
from models.base import Base


class ETLJobRecord(Base):
    """
    Durable record of one ETL job.

    Purpose:
    - Survive process restarts (reloaded on manager startup)
    - One row per job, keyed by job id

    Design:
    - payload holds the full serialized Job document
    - name, status and timestamps are copied out for listing and filtering
    """
    __tablename__ = "etl_jobs"

    id = Column(String(64), primary_key=True)
    name = Column(String(100), nullable=False)
    status = Column(String(20), nullable=False, index=True)

    payload = Column(JSON, nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("idx_etl_job_status_created", "status", "created_at"),
    )
