"""
Abstract base class for source extractors
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Type
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from core.exceptions import ExtractionError
from models.base import SourceKind
import logging

logger = logging.getLogger(__name__)

Record = Dict[str, Any]


class Extractor(ABC):
    """
    Abstract base class for all source extractors.

    Responsibilities:
    - Parse and validate the kind-specific config
    - Read the full record sequence (never a partial one)
    - Wrap every failure in ExtractionError
    """

    kind: SourceKind
    config_model: Type[BaseModel]

    def parse_config(self, config: Dict[str, Any]) -> BaseModel:
        """Validate the raw config mapping for this kind"""
        try:
            return self.config_model.model_validate(config or {})
        except PydanticValidationError as e:
            raise ExtractionError(
                f"Invalid {self.kind.value} source config",
                context={"source_type": self.kind.value, "errors": e.errors(include_url=False)},
                original_exception=e
            )

    async def extract(self, config: Dict[str, Any]) -> List[Record]:
        """Parse the config and fetch records"""
        parsed = self.parse_config(config)
        records = await self.fetch_data(parsed)
        logger.info(f"Extracted {len(records)} records from {self.kind.value} source")
        return records

    @abstractmethod
    async def fetch_data(self, config: BaseModel) -> List[Record]:
        """
        Fetch data from the source.

        Args:
            config: Validated kind-specific config

        Returns:
            List of record dictionaries
        """
        pass


def ensure_records(payload: Any, source: str) -> List[Record]:
    """Accept a JSON payload only if it is a record sequence"""
    if not isinstance(payload, list):
        raise ExtractionError(
            f"Expected a sequence of records from {source}",
            context={"source": source, "payload_type": type(payload).__name__}
        )
    return payload
