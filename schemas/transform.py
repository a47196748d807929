"""
Pydantic schemas for declarative transformation configs
"""

from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Pattern, Union
from pydantic import Field, field_validator
from pydantic.json_schema import SkipJsonSchema
from schemas.base import CamelModel


class FieldType(str, Enum):
    """Value types understood by field rules"""
    STRING = "string"
    NUMBER = "number"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    OBJECT = "object"
    ARRAY = "array"


class FilterOperator(str, Enum):
    """Comparison operators shared by filters and consistency rules"""
    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    CONTAINS = "contains"
    EXISTS = "exists"


class AggregateFunction(str, Enum):
    COUNT = "count"
    SUM = "sum"
    AVG = "avg"
    MIN = "min"
    MAX = "max"


class FieldRule(CamelModel):
    """
    Constraints for a single field.

    Used by the ``validate`` transformation (all keys) and by the validity
    quality metric (``type``, ``pattern``, ``min``, ``max``, ``validate``).
    The ``validate`` predicate is a Python callable and is never persisted.
    """

    required: bool = False
    type: Optional[FieldType] = None
    min_length: Optional[int] = Field(None, ge=0)
    max_length: Optional[int] = Field(None, ge=0)
    pattern: Optional[Pattern[str]] = None
    min: Optional[float] = None
    max: Optional[float] = None
    predicate: SkipJsonSchema[Optional[Callable[[Any], bool]]] = Field(None, alias="validate", exclude=True)


class FilterConfig(CamelModel):
    field: str
    operator: FilterOperator
    value: Any = None


class MapConfig(CamelModel):
    mappings: Dict[str, str]


class AggregateConfig(CamelModel):
    group_by: List[str]
    aggregations: Dict[str, List[AggregateFunction]] = Field(default_factory=dict)

    @field_validator("aggregations", mode="before")
    @classmethod
    def listify_functions(cls, v):
        """Accept a single function name per field"""
        if isinstance(v, dict):
            return {k: [fn] if isinstance(fn, (str, AggregateFunction)) else fn for k, fn in v.items()}
        return v


class DeduplicateConfig(CamelModel):
    fields: List[str]


class ValidateConfig(CamelModel):
    record_schema: Dict[str, FieldRule] = Field(..., alias="schema")
    action: str = "filter"


TransformationConfig = Union[FilterConfig, MapConfig, AggregateConfig, DeduplicateConfig, ValidateConfig]
