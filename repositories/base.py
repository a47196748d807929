"""
Job repository interface and in-memory implementation
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional
from schemas.job import Job


class JobRepository(ABC):
    """
    Durable job storage keyed by job id.

    ``put`` replaces any stored document for the id. Implementations store
    a copy; mutating a Job after ``put`` does not change what is stored.
    """

    async def initialize(self) -> None:
        """Prepare the backing store (directories, tables)"""
        return None

    @abstractmethod
    async def get(self, job_id: str) -> Optional[Job]:
        pass

    @abstractmethod
    async def put(self, job: Job) -> None:
        pass

    @abstractmethod
    async def list(self) -> List[Job]:
        """Every stored job, newest first"""
        pass

    @abstractmethod
    async def delete(self, job_id: str) -> bool:
        """Remove a job; False when it was not stored"""
        pass


def newest_first(jobs: List[Job]) -> List[Job]:
    return sorted(jobs, key=lambda job: job.created_at, reverse=True)


class InMemoryJobRepository(JobRepository):
    """Process-local store for tests and throwaway runs"""

    def __init__(self):
        self._jobs: Dict[str, Job] = {}

    async def get(self, job_id: str) -> Optional[Job]:
        job = self._jobs.get(job_id)
        return job.model_copy(deep=True) if job else None

    async def put(self, job: Job) -> None:
        self._jobs[job.id] = job.model_copy(deep=True)

    async def list(self) -> List[Job]:
        return newest_first([job.model_copy(deep=True) for job in self._jobs.values()])

    async def delete(self, job_id: str) -> bool:
        return self._jobs.pop(job_id, None) is not None
