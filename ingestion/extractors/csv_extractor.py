"""
CSV file extractor
"""

import pandas as pd
from pathlib import Path
from typing import Any, List
from core.exceptions import ExtractionError
from ingestion.extractors.base import Extractor, Record
from ingestion.extractors.json_extractor import FileSourceConfig
from models.base import SourceKind
import logging

logger = logging.getLogger(__name__)


class CSVFileExtractor(Extractor):
    """
    Extract data from CSV files.

    Supports:
    - Header row mapping (first line names the fields)
    - Whitespace trimming of headers and values
    - Missing trailing fields and empty values as None
    """

    kind = SourceKind.CSV_FILE
    config_model = FileSourceConfig

    async def fetch_data(self, config: FileSourceConfig) -> List[Record]:
        path = Path(config.file_path)
        logger.info(f"Reading CSV from {path}")

        try:
            # Keep every value as text; the header decides the field names
            df = pd.read_csv(
                path,
                dtype=str,
                index_col=False,
                keep_default_na=False,
                skip_blank_lines=True,
                encoding=config.encoding,
            )
        except (OSError, ValueError, pd.errors.ParserError) as e:
            raise ExtractionError(
                f"Failed to extract from CSV file: {e}",
                context={"file_path": str(path)},
                original_exception=e
            )

        headers = [str(column).strip() for column in df.columns]
        records = [
            {header: self._clean(value) for header, value in zip(headers, row)}
            for row in df.itertuples(index=False, name=None)
        ]

        logger.info(f"Read {len(records)} records from CSV")
        return records

    @staticmethod
    def _clean(value: Any) -> Any:
        """Trim text; empty and missing cells become None"""
        if value is None or (not isinstance(value, str) and pd.isna(value)):
            return None
        value = str(value).strip()
        return value or None
