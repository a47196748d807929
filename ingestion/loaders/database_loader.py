"""
Bulk insert loader for an arbitrary SQL table
"""

from typing import List
from sqlalchemy import column, insert, table
from sqlalchemy.exc import SQLAlchemyError
from core.database import connect
from ingestion.extractors.base import Record
from ingestion.loaders.base import Loader, LoadResult
from schemas.base import CamelModel
from models.base import TargetKind
import logging

logger = logging.getLogger(__name__)


class DatabaseTargetConfig(CamelModel):
    url: str
    table: str


class DatabaseLoader(Loader):
    """
    Insert every record in a single transaction.

    The table must already exist; columns are taken from the records. A
    failed transaction reports every record as failed.
    """

    kind = TargetKind.DATABASE
    config_model = DatabaseTargetConfig

    async def write(self, records: List[Record], config: DatabaseTargetConfig) -> LoadResult:
        if not records:
            return LoadResult()

        names: List[str] = []
        for record in records:
            names.extend(key for key in record if key not in names)
        target = table(config.table, *(column(name) for name in names))
        rows = [{name: record.get(name) for name in names} for record in records]

        try:
            async with connect(config.url) as conn:
                await conn.execute(insert(target), rows)
        except (SQLAlchemyError, OSError, ValueError) as e:
            logger.error(f"Bulk insert into {config.table} failed: {e}")
            return LoadResult.failed(records, str(e))

        return LoadResult(success_count=len(records))
