"""
Declarative record transformations

Stages run in the order the job definition lists them; each stage consumes
the previous stage's output.
"""

from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence
import pandas as pd
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from core.exceptions import ETLException, RecordValidationError, TransformationError
from core.validation import compare, validate_record
from ingestion.extractors.base import Record
from models.base import TransformationKind
from schemas.transform import (
    AggregateConfig,
    AggregateFunction,
    DeduplicateConfig,
    FilterConfig,
    MapConfig,
    ValidateConfig,
)
import logging

logger = logging.getLogger(__name__)


CONFIG_MODELS: Dict[TransformationKind, type] = {
    TransformationKind.FILTER: FilterConfig,
    TransformationKind.MAP: MapConfig,
    TransformationKind.AGGREGATE: AggregateConfig,
    TransformationKind.DEDUPLICATE: DeduplicateConfig,
    TransformationKind.VALIDATE: ValidateConfig,
}


def group_key(record: Mapping[str, Any], fields: Sequence[str]) -> str:
    """Composite key: field values joined with ``|``, missing values empty"""
    return "|".join("" if record.get(f) is None else str(record.get(f)) for f in fields)


class DataTransformer:
    """
    Apply ordered, named transformations to a record sequence.

    Supported kinds: filter, map, aggregate, deduplicate, validate.
    Unknown kinds are logged and skipped.
    """

    def __init__(self):
        self._stages: Dict[TransformationKind, Callable[[List[Record], Any], List[Record]]] = {
            TransformationKind.FILTER: self.filter_records,
            TransformationKind.MAP: self.map_fields,
            TransformationKind.AGGREGATE: self.aggregate,
            TransformationKind.DEDUPLICATE: self.deduplicate,
            TransformationKind.VALIDATE: self.validate_records,
        }

    async def transform(
        self,
        records: List[Record],
        transformations: Optional[Mapping[str, Any]] = None
    ) -> List[Record]:
        """
        Run every transformation stage in order.

        Raises:
            TransformationError: Malformed config or unexpected stage failure
        """
        result = list(records)

        for name, raw_config in (transformations or {}).items():
            kind = self._resolve_kind(name)
            if kind is None:
                logger.warning(f"Unknown transformation type: {name}")
                continue

            config = self._parse_config(kind, raw_config)
            before = len(result)
            try:
                result = self._stages[kind](result, config)
            except ETLException:
                raise
            except Exception as e:
                raise TransformationError(
                    f"Transformation '{kind.value}' failed: {e}",
                    context={"transformation": kind.value, "input_records": before},
                    original_exception=e
                )
            logger.info(f"Transformation '{kind.value}': {before} -> {len(result)} records")

        return result

    @staticmethod
    def _resolve_kind(name: str) -> Optional[TransformationKind]:
        try:
            return TransformationKind(name)
        except ValueError:
            return None

    @staticmethod
    def _parse_config(kind: TransformationKind, raw_config: Any) -> BaseModel:
        model = CONFIG_MODELS[kind]
        if isinstance(raw_config, model):
            return raw_config
        try:
            return model.model_validate(raw_config)
        except PydanticValidationError as e:
            raise TransformationError(
                f"Invalid config for transformation '{kind.value}'",
                context={"transformation": kind.value, "errors": e.errors(include_url=False)},
                original_exception=e
            )

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def filter_records(self, records: List[Record], config: FilterConfig) -> List[Record]:
        return [
            record for record in records
            if compare(record.get(config.field), config.operator, config.value)
        ]

    def map_fields(self, records: List[Record], config: MapConfig) -> List[Record]:
        return [
            {target: record.get(source) for target, source in config.mappings.items()}
            for record in records
        ]

    def aggregate(self, records: List[Record], config: AggregateConfig) -> List[Record]:
        groups: Dict[str, List[Record]] = {}
        for record in records:
            groups.setdefault(group_key(record, config.group_by), []).append(record)

        results = []
        for members in groups.values():
            first = members[0]
            row = {field: first.get(field) for field in config.group_by}

            for field, functions in config.aggregations.items():
                values = numeric_values(record.get(field) for record in members)
                for fn in functions:
                    row[f"{field}_{fn.value}"] = self._apply_function(fn, values, len(members))

            results.append(row)

        return results

    @staticmethod
    def _apply_function(fn: AggregateFunction, values: pd.Series, group_size: int) -> Any:
        if fn == AggregateFunction.COUNT:
            return group_size
        if fn == AggregateFunction.SUM:
            return values.sum().item() if len(values) else 0
        if values.empty:
            return None
        if fn == AggregateFunction.AVG:
            return float(values.mean())
        if fn == AggregateFunction.MIN:
            return values.min().item()
        return values.max().item()

    def deduplicate(self, records: List[Record], config: DeduplicateConfig) -> List[Record]:
        seen = set()
        unique = []
        for record in records:
            key = group_key(record, config.fields)
            if key in seen:
                continue
            seen.add(key)
            unique.append(record)
        return unique

    def validate_records(self, records: List[Record], config: ValidateConfig) -> List[Record]:
        kept = []
        for index, record in enumerate(records):
            try:
                validate_record(record, config.record_schema)
            except RecordValidationError as e:
                logger.debug(f"Record {index} failed validation: {e.message}")
                if config.action == "filter":
                    continue
            kept.append(record)

        dropped = len(records) - len(kept)
        if dropped:
            logger.warning(f"Validation dropped {dropped} of {len(records)} records")
        return kept


def numeric_values(values) -> pd.Series:
    """
    Numeric view of a column: numbers and numeric strings are kept; None,
    booleans and non-numeric values are dropped.
    """
    candidates = [
        v for v in values
        if isinstance(v, (int, float, str)) and not isinstance(v, bool)
    ]
    return pd.to_numeric(pd.Series(candidates, dtype=object), errors="coerce").dropna()
