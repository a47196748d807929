"""
Target kind registry
"""

from typing import Any, Dict, List, Mapping, Optional, Union
from pydantic import ValidationError as PydanticValidationError
from core.exceptions import LoadError, UnsupportedTargetKind
from ingestion.extractors.base import Record
from ingestion.loaders.api_loader import APILoader
from ingestion.loaders.base import Loader, LoadResult
from ingestion.loaders.database_loader import DatabaseLoader
from ingestion.loaders.file_loader import CSVFileLoader, JSONFileLoader
from models.base import TargetKind
from schemas.job import TargetSpec


def default_loaders() -> Dict[TargetKind, Loader]:
    return {
        TargetKind.JSON_FILE: JSONFileLoader(),
        TargetKind.CSV_FILE: CSVFileLoader(),
        TargetKind.DATABASE: DatabaseLoader(),
        TargetKind.API: APILoader(),
    }


class DataLoader:
    """Dispatch loading to the strategy registered for a target kind"""

    def __init__(self, loaders: Optional[Mapping[TargetKind, Loader]] = None):
        self.loaders: Dict[TargetKind, Loader] = dict(
            default_loaders() if loaders is None else loaders
        )

    def register(self, kind: Union[TargetKind, str], loader: Loader) -> None:
        self.loaders[TargetKind(kind)] = loader

    async def load(self, records: List[Record], target: Union[TargetSpec, Mapping[str, Any]]) -> LoadResult:
        """
        Write records to the described target.

        Raises:
            UnsupportedTargetKind: Unknown kind or no registered strategy
        """
        spec = self._resolve_spec(target)
        loader = self.loaders.get(spec.type)
        if loader is None:
            raise UnsupportedTargetKind(
                f"Unsupported target type: {spec.type.value}",
                context={"target_type": spec.type.value}
            )
        return await loader.load(records, spec.config)

    @staticmethod
    def _resolve_spec(target: Union[TargetSpec, Mapping[str, Any]]) -> TargetSpec:
        if isinstance(target, TargetSpec):
            return target

        kind = target.get("type") if isinstance(target, Mapping) else None
        if kind not in {k.value for k in TargetKind} and not isinstance(kind, TargetKind):
            raise UnsupportedTargetKind(
                f"Unsupported target type: {kind}",
                context={"target_type": kind}
            )

        try:
            return TargetSpec.model_validate(target)
        except PydanticValidationError as e:
            raise LoadError(
                "Invalid target spec",
                context={"errors": e.errors(include_url=False)},
                original_exception=e
            )
