"""
Unit tests for job repositories (memory, JSON files, SQL)
"""

import json
import pytest
import pytest_asyncio
from datetime import datetime, timedelta, timezone
from core.database import create_engine
from models.base import JobStatus
from repositories.base import InMemoryJobRepository
from repositories.file_repository import FileJobRepository
from repositories.sql_repository import SQLJobRepository
from schemas.job import Job

BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


def make_job(job_id, minutes=0, **kwargs):
    return Job(
        id=job_id,
        name=f"job {job_id}",
        source={"type": "json_file", "config": {"filePath": "in.json"}},
        target={"type": "csv_file", "config": {"filePath": "out.csv"}},
        transformations={"filter": {"field": "status", "operator": "equals", "value": "active"}},
        created_at=BASE_TIME + timedelta(minutes=minutes),
        updated_at=BASE_TIME + timedelta(minutes=minutes),
        **kwargs,
    )


@pytest_asyncio.fixture(params=["memory", "file", "sql"])
async def repository(request, tmp_path):
    if request.param == "memory":
        yield InMemoryJobRepository()
    elif request.param == "file":
        repo = FileJobRepository(tmp_path / "jobs")
        await repo.initialize()
        yield repo
    else:
        engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'jobs.db'}")
        repo = SQLJobRepository(engine)
        await repo.initialize()
        yield repo
        await engine.dispose()


class TestJobRepository:

    @pytest.mark.asyncio
    async def test_put_and_get(self, repository):
        job = make_job("etl_a", data_quality_rules={"completeness": {"requiredFields": ["id"]}})

        await repository.put(job)
        loaded = await repository.get("etl_a")

        assert loaded.model_dump() == job.model_dump()

    @pytest.mark.asyncio
    async def test_get_missing(self, repository):
        assert await repository.get("etl_missing") is None

    @pytest.mark.asyncio
    async def test_put_replaces(self, repository):
        job = make_job("etl_a")
        await repository.put(job)

        job.status = JobStatus.FAILED
        job.error = "boom"
        await repository.put(job)

        loaded = await repository.get("etl_a")
        assert loaded.status == JobStatus.FAILED
        assert loaded.error == "boom"
        assert len(await repository.list()) == 1

    @pytest.mark.asyncio
    async def test_stores_a_copy(self, repository):
        job = make_job("etl_a")
        await repository.put(job)

        job.status = JobStatus.COMPLETED

        assert (await repository.get("etl_a")).status == JobStatus.PENDING

    @pytest.mark.asyncio
    async def test_list_newest_first(self, repository):
        for job_id, minutes in (("etl_old", 0), ("etl_new", 10), ("etl_mid", 5)):
            await repository.put(make_job(job_id, minutes))

        assert [job.id for job in await repository.list()] == ["etl_new", "etl_mid", "etl_old"]

    @pytest.mark.asyncio
    async def test_delete(self, repository):
        await repository.put(make_job("etl_a"))

        assert await repository.delete("etl_a") is True
        assert await repository.delete("etl_a") is False
        assert await repository.get("etl_a") is None


class TestFileJobRepository:

    @pytest.mark.asyncio
    async def test_camel_case_document(self, tmp_path):
        repo = FileJobRepository(tmp_path)
        await repo.put(make_job("etl_a"))

        document = json.loads((tmp_path / "job_etl_a.json").read_text())

        assert document["id"] == "etl_a"
        assert "createdAt" in document
        assert "totalRecords" in document["metrics"]

    @pytest.mark.asyncio
    async def test_corrupt_files_skipped(self, tmp_path):
        repo = FileJobRepository(tmp_path)
        await repo.put(make_job("etl_a"))
        (tmp_path / "job_broken.json").write_text("{not json")
        (tmp_path / "job_partial.json").write_text(json.dumps({"id": "etl_partial"}))

        assert [job.id for job in await repo.list()] == ["etl_a"]
        assert await repo.get("broken") is None

    @pytest.mark.asyncio
    async def test_list_without_directory(self, tmp_path):
        assert await FileJobRepository(tmp_path / "absent").list() == []
