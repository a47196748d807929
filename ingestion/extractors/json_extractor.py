"""
JSON file extractor
"""

import json
from pathlib import Path
from typing import List
from core.exceptions import ExtractionError
from ingestion.extractors.base import Extractor, Record, ensure_records
from models.base import SourceKind
from schemas.base import CamelModel
import logging

logger = logging.getLogger(__name__)

ENVELOPE_KEYS = ("data", "results")


class FileSourceConfig(CamelModel):
    file_path: str
    encoding: str = "utf-8"


class JSONFileExtractor(Extractor):
    """Read a JSON array of records from a file"""

    kind = SourceKind.JSON_FILE
    config_model = FileSourceConfig

    async def fetch_data(self, config: FileSourceConfig) -> List[Record]:
        path = Path(config.file_path)
        logger.info(f"Reading JSON from {path}")

        try:
            payload = json.loads(path.read_text(encoding=config.encoding))
        except (OSError, ValueError) as e:
            raise ExtractionError(
                f"Failed to extract from JSON file: {e}",
                context={"file_path": str(path)},
                original_exception=e
            )

        # Exported documents often wrap the array in an envelope object
        if isinstance(payload, dict):
            for key in ENVELOPE_KEYS:
                if isinstance(payload.get(key), list):
                    payload = payload[key]
                    break

        return ensure_records(payload, str(path))
