"""
Abstract base class for target loaders
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Type
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError
from ingestion.extractors.base import Record
from models.base import TargetKind
from schemas.base import CamelModel
import logging

logger = logging.getLogger(__name__)


class LoadResult(CamelModel):
    """Per-target outcome; success_count + error_count never exceeds the input size"""
    success_count: int = 0
    error_count: int = 0
    errors: List[str] = Field(default_factory=list)

    @classmethod
    def failed(cls, records: List[Record], message: str) -> "LoadResult":
        """Every record failed for one reason"""
        return cls(success_count=0, error_count=len(records), errors=[message])


class Loader(ABC):
    """
    Abstract base class for all target loaders.

    Write failures are reported in the LoadResult, never raised.
    """

    kind: TargetKind
    config_model: Type[BaseModel]

    async def load(self, records: List[Record], config: Dict[str, Any]) -> LoadResult:
        try:
            parsed = self.config_model.model_validate(config or {})
        except PydanticValidationError as e:
            logger.error(f"Invalid {self.kind.value} target config: {e}")
            return LoadResult.failed(records, f"Invalid {self.kind.value} target config: {e}")

        result = await self.write(records, parsed)
        logger.info(
            f"Loaded to {self.kind.value}: {result.success_count} succeeded, "
            f"{result.error_count} failed"
        )
        return result

    @abstractmethod
    async def write(self, records: List[Record], config: BaseModel) -> LoadResult:
        """
        Write records to the target.

        Args:
            records: Records to write
            config: Validated kind-specific config
        """
        pass
