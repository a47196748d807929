"""
JSON and CSV file loaders

The whole sequence is written in one atomic step; on failure no partial file
is left behind and every record counts as failed.
"""

import json
from pathlib import Path
from typing import List
import pandas as pd
from core.files import atomic_write
from ingestion.extractors.base import Record
from ingestion.loaders.base import Loader, LoadResult
from models.base import TargetKind
from schemas.base import CamelModel
import logging

logger = logging.getLogger(__name__)


class FileTargetConfig(CamelModel):
    file_path: str
    encoding: str = "utf-8"


class JSONFileLoader(Loader):
    kind = TargetKind.JSON_FILE
    config_model = FileTargetConfig

    async def write(self, records: List[Record], config: FileTargetConfig) -> LoadResult:
        def dump(name: str) -> None:
            with open(name, "w", encoding=config.encoding) as f:
                json.dump(records, f, indent=2, default=str)

        try:
            atomic_write(config.file_path, dump)
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Failed to write JSON file {config.file_path}: {e}")
            return LoadResult.failed(records, str(e))

        return LoadResult(success_count=len(records))


class CSVFileLoader(Loader):
    """
    Write records as CSV with a header row.

    Columns follow first appearance across records; missing values are
    written empty.
    """

    kind = TargetKind.CSV_FILE
    config_model = FileTargetConfig

    async def write(self, records: List[Record], config: FileTargetConfig) -> LoadResult:
        if not records:
            return LoadResult()

        columns: List[str] = []
        for record in records:
            columns.extend(key for key in record if key not in columns)

        try:
            df = pd.DataFrame.from_records(records, columns=columns)
            atomic_write(
                Path(config.file_path),
                lambda name: df.to_csv(name, index=False, encoding=config.encoding),
            )
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Failed to write CSV file {config.file_path}: {e}")
            return LoadResult.failed(records, str(e))

        return LoadResult(success_count=len(records))
