"""
JSON file job repository: one ``job_<id>.json`` document per job
"""

import json
from pathlib import Path
from typing import List, Optional, Union
from pydantic import ValidationError as PydanticValidationError
from core.files import atomic_write_text
from repositories.base import JobRepository, newest_first
from schemas.job import Job
import logging

logger = logging.getLogger(__name__)


class FileJobRepository(JobRepository):
    """
    Store jobs as camelCase JSON files under ``data_path``.

    Writes are atomic. Files that cannot be read or parsed are logged and
    skipped when listing.
    """

    def __init__(self, data_path: Union[str, Path]):
        self.data_path = Path(data_path)

    async def initialize(self) -> None:
        self.data_path.mkdir(parents=True, exist_ok=True)

    def _path(self, job_id: str) -> Path:
        return self.data_path / f"job_{job_id}.json"

    async def get(self, job_id: str) -> Optional[Job]:
        path = self._path(job_id)
        if not path.exists():
            return None
        return self._read(path)

    async def put(self, job: Job) -> None:
        atomic_write_text(self._path(job.id), job.model_dump_json(by_alias=True, indent=2))

    async def list(self) -> List[Job]:
        if not self.data_path.exists():
            return []

        jobs = []
        for path in self.data_path.glob("job_*.json"):
            job = self._read(path)
            if job is not None:
                jobs.append(job)
        return newest_first(jobs)

    async def delete(self, job_id: str) -> bool:
        path = self._path(job_id)
        if not path.exists():
            return False
        path.unlink()
        return True

    @staticmethod
    def _read(path: Path) -> Optional[Job]:
        try:
            return Job.model_validate(json.loads(path.read_text(encoding="utf-8")))
        except (OSError, ValueError, PydanticValidationError) as e:
            logger.error(f"Failed to load job from {path.name}: {e}")
            return None
