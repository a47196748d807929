"""
Source kind registry

Resolves a source spec to the extractor strategy registered for its kind.
"""

from typing import Any, Dict, List, Mapping, Optional, Union
from pydantic import ValidationError as PydanticValidationError
from core.exceptions import ExtractionError, UnsupportedSourceKind
from ingestion.extractors.api_extractor import APIExtractor
from ingestion.extractors.base import Extractor, Record
from ingestion.extractors.csv_extractor import CSVFileExtractor
from ingestion.extractors.database_extractor import DatabaseExtractor
from ingestion.extractors.json_extractor import JSONFileExtractor
from models.base import SourceKind
from schemas.job import SourceSpec
import logging

logger = logging.getLogger(__name__)


def default_extractors() -> Dict[SourceKind, Extractor]:
    return {
        SourceKind.JSON_FILE: JSONFileExtractor(),
        SourceKind.CSV_FILE: CSVFileExtractor(),
        SourceKind.DATABASE: DatabaseExtractor(),
        SourceKind.API: APIExtractor(),
    }


class DataExtractor:
    """Dispatch extraction to the strategy registered for a source kind"""

    def __init__(self, extractors: Optional[Mapping[SourceKind, Extractor]] = None):
        self.extractors: Dict[SourceKind, Extractor] = dict(
            default_extractors() if extractors is None else extractors
        )

    def register(self, kind: Union[SourceKind, str], extractor: Extractor) -> None:
        """Plug in (or replace) the strategy for one kind"""
        self.extractors[SourceKind(kind)] = extractor

    async def extract(self, source: Union[SourceSpec, Mapping[str, Any]]) -> List[Record]:
        """
        Read every record from the described source.

        Raises:
            UnsupportedSourceKind: Unknown kind or no registered strategy
            ExtractionError: Any read or parse failure
        """
        spec = self._resolve_spec(source)
        extractor = self.extractors.get(spec.type)
        if extractor is None:
            raise UnsupportedSourceKind(
                f"Unsupported source type: {spec.type.value}",
                context={"source_type": spec.type.value}
            )

        return await extractor.extract(spec.config)

    @staticmethod
    def _resolve_spec(source: Union[SourceSpec, Mapping[str, Any]]) -> SourceSpec:
        if isinstance(source, SourceSpec):
            return source

        kind = source.get("type") if isinstance(source, Mapping) else None
        if kind not in {k.value for k in SourceKind} and not isinstance(kind, SourceKind):
            raise UnsupportedSourceKind(
                f"Unsupported source type: {kind}",
                context={"source_type": kind}
            )

        try:
            return SourceSpec.model_validate(source)
        except PydanticValidationError as e:
            raise ExtractionError(
                "Invalid source spec",
                context={"errors": e.errors(include_url=False)},
                original_exception=e
            )
