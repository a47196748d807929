"""
SQLAlchemy job repository backed by the ``etl_jobs`` table
"""

from typing import List, Optional
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker
from core.database import create_session_maker
from models.base import Base
from models.etl_job import ETLJobRecord
from repositories.base import JobRepository
from schemas.job import Job
import logging

logger = logging.getLogger(__name__)


class SQLJobRepository(JobRepository):
    """
    Store each job as one row holding its JSON document.

    Works with any async SQLAlchemy driver (asyncpg in production, aiosqlite
    in tests).
    """

    def __init__(self, engine: AsyncEngine, session_maker: Optional[async_sessionmaker] = None):
        self.engine = engine
        self.SessionLocal = session_maker or create_session_maker(engine)

    async def initialize(self) -> None:
        """Create the jobs table if it does not exist"""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all, tables=[ETLJobRecord.__table__])

    async def get(self, job_id: str) -> Optional[Job]:
        async with self.SessionLocal() as session:
            record = await session.get(ETLJobRecord, job_id)
            return self._to_job(record) if record else None

    async def put(self, job: Job) -> None:
        async with self.SessionLocal() as session:
            await session.merge(ETLJobRecord(
                id=job.id,
                name=job.name,
                status=job.status.value,
                payload=job.model_dump(mode="json", by_alias=True),
                created_at=job.created_at,
                updated_at=job.updated_at,
            ))
            await session.commit()

    async def list(self) -> List[Job]:
        async with self.SessionLocal() as session:
            result = await session.execute(
                select(ETLJobRecord).order_by(ETLJobRecord.created_at.desc())
            )
            jobs = [self._to_job(record) for record in result.scalars().all()]
        return [job for job in jobs if job is not None]

    async def delete(self, job_id: str) -> bool:
        async with self.SessionLocal() as session:
            result = await session.execute(delete(ETLJobRecord).where(ETLJobRecord.id == job_id))
            await session.commit()
            return result.rowcount > 0

    @staticmethod
    def _to_job(record: ETLJobRecord) -> Optional[Job]:
        try:
            return Job.model_validate(record.payload)
        except PydanticValidationError as e:
            logger.error(f"Stored job {record.id} is malformed: {e}")
            return None
