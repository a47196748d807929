"""
Pytest configuration and fixtures
"""

import asyncio
import json
import pytest
import pytest_asyncio
from typing import List
from core.database import create_engine
from ingestion.extractors.base import Extractor
from ingestion.extractors.json_extractor import FileSourceConfig
from ingestion.extractors.registry import DataExtractor
from ingestion.job_manager import ETLJobManager
from ingestion.runner import ETLRunner
from models.base import SourceKind
from repositories.base import InMemoryJobRepository


class GatedExtractor(Extractor):
    """
    Extractor that blocks until released.

    Lets tests hold a job in the running state while they act on it.
    """

    kind = SourceKind.JSON_FILE
    config_model = FileSourceConfig

    def __init__(self, records: List[dict]):
        self.records = records
        self.started = asyncio.Event()
        self.release = asyncio.Event()

    async def fetch_data(self, config):
        self.started.set()
        await self.release.wait()
        return list(self.records)


@pytest.fixture
def sample_records():
    """Customer records with one inactive entry and one missing email"""
    return [
        {"id": 1, "name": "Ada Lovelace", "email": "ada@example.com", "status": "active", "age": 36},
        {"id": 2, "name": "Alan Turing", "email": "alan@example.com", "status": "inactive", "age": 41},
        {"id": 3, "name": "Grace Hopper", "email": None, "status": "active", "age": 85},
    ]


@pytest.fixture
def json_source(tmp_path, sample_records):
    """Write sample records to a JSON file and return its path"""
    path = tmp_path / "customers.json"
    path.write_text(json.dumps(sample_records), encoding="utf-8")
    return path


@pytest.fixture
def job_definition(json_source, tmp_path):
    """Definition reading the sample JSON file and writing active customers"""
    return {
        "name": "active customers",
        "source": {"type": "json_file", "config": {"filePath": str(json_source)}},
        "target": {"type": "json_file", "config": {"filePath": str(tmp_path / "out" / "active.json")}},
        "transformations": {
            "filter": {"field": "status", "operator": "equals", "value": "active"},
        },
        "dataQualityRules": {
            "completeness": {"requiredFields": ["id", "email"]},
            "uniqueness": {"uniqueFields": ["id"]},
        },
    }


@pytest.fixture
def gated_extractor(sample_records):
    return GatedExtractor(sample_records)


@pytest.fixture
def gated_manager(gated_extractor):
    """Manager whose JSON extraction blocks on ``gated_extractor.release``"""
    runner = ETLRunner(extractor=DataExtractor({SourceKind.JSON_FILE: gated_extractor}))
    return ETLJobManager(
        repository=InMemoryJobRepository(),
        runner=runner,
        max_concurrent_jobs=3,
    )


@pytest_asyncio.fixture(scope="function")
async def sqlite_engine(tmp_path):
    """File-backed SQLite engine (aiosqlite driver)"""
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    yield engine
    await engine.dispose()


@pytest.fixture
def sqlite_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'data.db'}"
