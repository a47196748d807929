"""
Generic SQL query extractor
"""

from typing import Any, Dict, List
from pydantic import Field
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from core.database import connect
from core.exceptions import ExtractionError
from ingestion.extractors.base import Extractor, Record
from models.base import SourceKind
from schemas.base import CamelModel
import logging

logger = logging.getLogger(__name__)


class DatabaseSourceConfig(CamelModel):
    url: str
    query: str
    params: Dict[str, Any] = Field(default_factory=dict)


class DatabaseExtractor(Extractor):
    """
    Run one read query against an async SQLAlchemy URL.

    Rows come back as plain dicts keyed by column label.
    """

    kind = SourceKind.DATABASE
    config_model = DatabaseSourceConfig

    async def fetch_data(self, config: DatabaseSourceConfig) -> List[Record]:
        logger.info("Querying database source")

        try:
            async with connect(config.url) as conn:
                result = await conn.execute(text(config.query), config.params)
                rows = [dict(row) for row in result.mappings().all()]
        except (SQLAlchemyError, OSError, ValueError) as e:
            raise ExtractionError(
                f"Failed to extract from database: {e}",
                context={"query": config.query},
                original_exception=e
            )

        return rows
