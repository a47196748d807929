"""
Pydantic schemas for data quality rules, thresholds and reports
"""

from datetime import datetime
from typing import Annotated, Any, Callable, Dict, List, Literal, Optional, Union
from pydantic import ConfigDict, Field
from pydantic.json_schema import SkipJsonSchema
from schemas.base import CamelModel
from schemas.transform import FieldRule, FilterOperator, FieldType


# ============================================================================
# Thresholds
# ============================================================================

class QualityThresholds(CamelModel):
    """
    Immutable pass marks for each metric plus anomaly detector defaults.

    Passed into ``DataQualityChecker``; build one from settings with
    ``from_settings`` or override individual values by keyword.
    """

    model_config = ConfigDict(frozen=True)

    completeness: float = Field(0.95, ge=0, le=1)
    uniqueness: float = Field(0.99, ge=0, le=1)
    validity: float = Field(0.98, ge=0, le=1)
    consistency: float = Field(0.95, ge=0, le=1)
    accuracy: float = Field(0.95, ge=0, le=1)
    timeliness: float = Field(0.90, ge=0, le=1)
    std_dev_threshold: float = Field(3.0, gt=0)
    rare_pattern_ratio: float = Field(0.05, gt=0, le=1)

    @classmethod
    def from_settings(cls, settings) -> "QualityThresholds":
        return cls(
            completeness=settings.COMPLETENESS_THRESHOLD,
            uniqueness=settings.UNIQUENESS_THRESHOLD,
            validity=settings.VALIDITY_THRESHOLD,
            consistency=settings.CONSISTENCY_THRESHOLD,
            accuracy=settings.ACCURACY_THRESHOLD,
            timeliness=settings.TIMELINESS_THRESHOLD,
            std_dev_threshold=settings.ANOMALY_STD_DEV_THRESHOLD,
            rare_pattern_ratio=settings.RARE_PATTERN_RATIO,
        )


# ============================================================================
# Rules
# ============================================================================

class CompletenessRules(CamelModel):
    required_fields: List[str] = Field(default_factory=list)


class UniquenessRules(CamelModel):
    unique_fields: List[str] = Field(default_factory=list)


class ValidityRules(CamelModel):
    field_rules: Dict[str, FieldRule] = Field(default_factory=dict)


class ConsistencyRule(CamelModel):
    """
    Cross-field rule evaluated per record.

    Either a Python predicate (``validate``) or a declarative comparison of
    ``field`` against ``otherField`` (or a literal ``value``). Only the
    declarative form survives persistence.
    """

    name: str
    description: Optional[str] = None
    predicate: SkipJsonSchema[Optional[Callable[[Dict[str, Any]], bool]]] = Field(None, alias="validate", exclude=True)
    field: Optional[str] = None
    operator: Optional[FilterOperator] = None
    other_field: Optional[str] = None
    value: Any = None


class ConsistencyRules(CamelModel):
    rules: List[ConsistencyRule] = Field(default_factory=list)


class AccuracyRules(CamelModel):
    reference_data: List[Dict[str, Any]]
    key_field: str
    compare_fields: List[str]


class TimelinessRules(CamelModel):
    date_field: str
    max_age: float = Field(..., gt=0, description="Maximum record age in seconds")


class AnomalyRules(CamelModel):
    numeric_fields: List[str] = Field(default_factory=list)
    pattern_fields: List[str] = Field(default_factory=list)
    std_dev_threshold: Optional[float] = Field(None, gt=0)
    rare_pattern_ratio: Optional[float] = Field(None, gt=0, le=1)


class DataQualityRules(CamelModel):
    completeness: Optional[CompletenessRules] = None
    uniqueness: Optional[UniquenessRules] = None
    validity: Optional[ValidityRules] = None
    consistency: Optional[ConsistencyRules] = None
    accuracy: Optional[AccuracyRules] = None
    timeliness: Optional[TimelinessRules] = None
    anomalies: Optional[AnomalyRules] = None


# ============================================================================
# Report
# ============================================================================

class MetricResult(CamelModel):
    """Result for one quality dimension"""

    model_config = ConfigDict(frozen=True)

    score: float
    issues: List[str] = Field(default_factory=list)
    meets_threshold: bool
    field_results: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
    details: Dict[str, Any] = Field(default_factory=dict)


class QualityMetrics(CamelModel):
    model_config = ConfigDict(frozen=True)

    completeness: MetricResult
    uniqueness: MetricResult
    validity: MetricResult
    consistency: MetricResult
    accuracy: Optional[MetricResult] = None
    timeliness: Optional[MetricResult] = None

    def computed(self) -> Dict[str, MetricResult]:
        """Metrics that were actually evaluated, in weight order"""
        return {
            name: result
            for name, result in (
                ("completeness", self.completeness),
                ("uniqueness", self.uniqueness),
                ("validity", self.validity),
                ("consistency", self.consistency),
                ("accuracy", self.accuracy),
                ("timeliness", self.timeliness),
            )
            if result is not None
        }


class StatisticalOutlier(CamelModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["statistical_outlier"] = "statistical_outlier"
    field: str
    record_index: int
    value: float
    z_score: float
    mean: float
    std_dev: float
    description: str


class PatternAnomaly(CamelModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["pattern_anomaly"] = "pattern_anomaly"
    field: str
    record_index: int
    value: Any
    pattern: str
    occurrences: int
    percentage: float
    description: str


Anomaly = Annotated[Union[StatisticalOutlier, PatternAnomaly], Field(discriminator="type")]


class Recommendation(CamelModel):
    model_config = ConfigDict(frozen=True)

    type: str
    priority: Literal["high", "medium", "low"]
    message: str
    actions: List[str] = Field(default_factory=list)


class QualityReport(CamelModel):
    """Immutable result of one quality assessment"""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    total_records: int
    metrics: QualityMetrics
    anomalies: List[Anomaly] = Field(default_factory=list)
    overall_score: float
    recommendations: List[Recommendation] = Field(default_factory=list)


class SchemaConsistencyResult(CamelModel):
    model_config = ConfigDict(frozen=True)

    consistent: bool
    issues: List[str] = Field(default_factory=list)


ExpectedSchema = Dict[str, FieldType]
