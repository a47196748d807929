"""
Data quality checker

Scores a record sequence on six dimensions (completeness, uniqueness,
validity, consistency, accuracy, timeliness), runs anomaly detection and
produces an immutable QualityReport.
"""

import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union
import pandas as pd
from pydantic import ValidationError as PydanticValidationError
from core.config import settings
from core.exceptions import QualityCheckError
from core.validation import compare, matches_type, to_number, type_name
from ingestion.extractors.base import Record
from quality.anomalies import detect_anomalies
from quality.scoring import generate_recommendations, overall_score
from schemas.quality import (
    AccuracyRules,
    CompletenessRules,
    ConsistencyRule,
    ConsistencyRules,
    DataQualityRules,
    MetricResult,
    QualityMetrics,
    QualityReport,
    QualityThresholds,
    SchemaConsistencyResult,
    TimelinessRules,
    UniquenessRules,
    ValidityRules,
)
from schemas.transform import FieldRule, FieldType, FilterOperator
import logging

logger = logging.getLogger(__name__)


def _is_missing(value: Any) -> bool:
    return value is None or value == ""


def _parse_date(value: Any) -> Optional[pd.Timestamp]:
    """
    UTC timestamp for a date value; None when missing or unparseable.

    Numbers are epoch milliseconds.
    """
    if value is None or isinstance(value, bool) or not isinstance(value, (str, int, float, datetime)):
        return None
    if isinstance(value, (int, float)):
        parsed = pd.to_datetime(value, unit="ms", utc=True, errors="coerce")
    else:
        parsed = pd.to_datetime(value, utc=True, errors="coerce")
    return None if pd.isna(parsed) else parsed


def _fingerprint(value: Any) -> str:
    """Structural identity for equality checks; dict key order is ignored"""
    return json.dumps(value, sort_keys=True, default=str)


class DataQualityChecker:
    """
    Assess data quality against declarative rules.

    Thresholds are fixed at construction; the checker holds no other state,
    so one instance can serve concurrent jobs.
    """

    def __init__(self, thresholds: Optional[QualityThresholds] = None):
        self.thresholds = thresholds or QualityThresholds.from_settings(settings)

    def perform_quality_checks(
        self,
        records: Sequence[Record],
        rules: Union[DataQualityRules, Mapping[str, Any], None] = None,
    ) -> QualityReport:
        """
        Score records and build the report.

        Accuracy and timeliness are evaluated only when their rules are
        present.

        Raises:
            QualityCheckError: Rules are malformed
        """
        rules = self._parse_rules(rules)
        records = list(records)

        metrics = QualityMetrics(
            completeness=self.check_completeness(records, rules.completeness),
            uniqueness=self.check_uniqueness(records, rules.uniqueness),
            validity=self.check_validity(records, rules.validity),
            consistency=self.check_consistency(records, rules.consistency),
            accuracy=self.check_accuracy(records, rules.accuracy) if rules.accuracy else None,
            timeliness=self.check_timeliness(records, rules.timeliness) if rules.timeliness else None,
        )

        anomalies = detect_anomalies(
            records,
            rules.anomalies,
            std_dev_threshold=self.thresholds.std_dev_threshold,
            rare_pattern_ratio=self.thresholds.rare_pattern_ratio,
        )

        report = QualityReport(
            timestamp=datetime.now(timezone.utc),
            total_records=len(records),
            metrics=metrics,
            anomalies=anomalies,
            overall_score=overall_score(metrics),
            recommendations=generate_recommendations(metrics, len(anomalies), self.thresholds),
        )

        logger.info(
            f"Quality check: {len(records)} records, overall score {report.overall_score:.3f}, "
            f"{len(anomalies)} anomalies"
        )
        return report

    @staticmethod
    def _parse_rules(rules: Union[DataQualityRules, Mapping[str, Any], None]) -> DataQualityRules:
        if rules is None:
            return DataQualityRules()
        if isinstance(rules, DataQualityRules):
            return rules
        try:
            return DataQualityRules.model_validate(rules)
        except PydanticValidationError as e:
            raise QualityCheckError(
                "Invalid data quality rules",
                context={"errors": e.errors(include_url=False)},
                original_exception=e
            )

    # ------------------------------------------------------------------
    # Metrics
    # ------------------------------------------------------------------

    def check_completeness(
        self,
        records: List[Record],
        rules: Optional[CompletenessRules] = None
    ) -> MetricResult:
        if not records:
            return MetricResult(score=0.0, issues=["No data to analyze"], meets_threshold=False)

        required = list(rules.required_fields) if rules else []
        fields: List[str] = []
        for record in records:
            fields.extend(key for key in record if key not in fields)
        fields.extend(field for field in required if field not in fields)

        field_results = {}
        issues = []
        for field in fields:
            missing = sum(1 for record in records if _is_missing(record.get(field)))
            completeness = (len(records) - missing) / len(records)
            meets = completeness >= self.thresholds.completeness
            field_results[field] = {
                "completeness": completeness,
                "missingCount": missing,
                "isRequired": field in required,
                "meetsThreshold": meets,
            }
            if not meets:
                issues.append(
                    f"Field '{field}' has {missing} missing values ({completeness * 100:.1f}% complete)"
                )

        score = sum(r["completeness"] for r in field_results.values()) / len(field_results) if field_results else 1.0
        return MetricResult(
            score=score,
            issues=issues,
            meets_threshold=score >= self.thresholds.completeness,
            field_results=field_results,
        )

    def check_uniqueness(
        self,
        records: List[Record],
        rules: Optional[UniquenessRules] = None
    ) -> MetricResult:
        if not records:
            return MetricResult(score=1.0, meets_threshold=True)

        total = len(records)
        field_results = {}
        issues = []

        for field in (rules.unique_fields if rules else []):
            distinct = len({_fingerprint(record.get(field)) for record in records})
            uniqueness = distinct / total
            meets = uniqueness >= self.thresholds.uniqueness
            field_results[field] = {
                "uniqueness": uniqueness,
                "duplicateCount": total - distinct,
                "totalValues": total,
                "uniqueValues": distinct,
                "meetsThreshold": meets,
            }
            if not meets:
                issues.append(f"Field '{field}' has {total - distinct} duplicate values")

        unique_records = len({_fingerprint(record) for record in records})
        record_duplicates = total - unique_records
        record_uniqueness = unique_records / total
        if record_duplicates:
            issues.append(f"Found {record_duplicates} duplicate records")

        if field_results:
            field_uniqueness = sum(r["uniqueness"] for r in field_results.values()) / len(field_results)
        else:
            field_uniqueness = record_uniqueness

        return MetricResult(
            score=min(field_uniqueness, record_uniqueness),
            issues=issues,
            meets_threshold=(
                field_uniqueness >= self.thresholds.uniqueness
                and record_uniqueness >= self.thresholds.uniqueness
            ),
            field_results=field_results,
            details={"recordDuplicates": record_duplicates, "recordUniqueness": record_uniqueness},
        )

    def check_validity(
        self,
        records: List[Record],
        rules: Optional[ValidityRules] = None
    ) -> MetricResult:
        field_rules = rules.field_rules if rules else {}
        if not records or not field_rules:
            return MetricResult(score=1.0, meets_threshold=True)

        total = len(records)
        field_results = {}
        issues = []

        for field, rule in field_rules.items():
            valid = sum(1 for record in records if self._is_valid(record.get(field), rule))
            validity = valid / total
            meets = validity >= self.thresholds.validity
            field_results[field] = {
                "validity": validity,
                "validCount": valid,
                "invalidCount": total - valid,
                "meetsThreshold": meets,
            }
            if not meets:
                issues.append(
                    f"Field '{field}' has {total - valid} invalid values ({validity * 100:.1f}% valid)"
                )

        score = sum(r["validity"] for r in field_results.values()) / len(field_results)
        return MetricResult(
            score=score,
            issues=issues,
            meets_threshold=score >= self.thresholds.validity,
            field_results=field_results,
        )

    @staticmethod
    def _is_valid(value: Any, rule: FieldRule) -> bool:
        """
        True only if every constraint in the rule holds.

        None passes the type check; a range or pattern cannot be satisfied by
        None. A predicate that raises counts as invalid.
        """
        if rule.type and value is not None and not matches_type(value, rule.type):
            return False

        if rule.pattern is not None and (value is None or not rule.pattern.search(str(value))):
            return False

        if rule.min is not None or rule.max is not None:
            number = to_number(value)
            if number is None:
                return False
            if rule.min is not None and number < rule.min:
                return False
            if rule.max is not None and number > rule.max:
                return False

        if rule.predicate is not None:
            try:
                return bool(rule.predicate(value))
            except Exception as e:
                logger.debug(f"Validity predicate raised for value {value!r}: {e}")
                return False

        return True

    def check_consistency(
        self,
        records: List[Record],
        rules: Optional[ConsistencyRules] = None
    ) -> MetricResult:
        if not records:
            return MetricResult(score=1.0, meets_threshold=True)

        total = len(records)
        rule_results = []
        issues = []

        for rule in (rules.rules if rules else []):
            if not self._is_usable(rule):
                logger.warning(f"Skipping consistency rule '{rule.name}': no predicate or comparison")
                continue

            consistent = sum(1 for record in records if self._is_consistent(record, rule))
            consistency = consistent / total
            meets = consistency >= self.thresholds.consistency
            rule_results.append({
                "name": rule.name,
                "description": rule.description,
                "consistency": consistency,
                "consistentCount": consistent,
                "inconsistentCount": total - consistent,
                "meetsThreshold": meets,
            })
            if not meets:
                issues.append(
                    f"Consistency rule '{rule.name}' failed for {total - consistent} records"
                )

        score = (
            sum(r["consistency"] for r in rule_results) / len(rule_results)
            if rule_results else 1.0
        )
        return MetricResult(
            score=score,
            issues=issues,
            meets_threshold=score >= self.thresholds.consistency,
            details={"ruleResults": rule_results},
        )

    @staticmethod
    def _is_usable(rule: ConsistencyRule) -> bool:
        return rule.predicate is not None or (
            rule.field is not None and (rule.operator is not None or rule.other_field is not None)
        )

    @staticmethod
    def _is_consistent(record: Record, rule: ConsistencyRule) -> bool:
        if rule.predicate is not None:
            try:
                return bool(rule.predicate(record))
            except Exception as e:
                logger.debug(f"Consistency rule '{rule.name}' raised: {e}")
                return False

        operator = rule.operator or FilterOperator.EQUALS
        expected = record.get(rule.other_field) if rule.other_field else rule.value
        return compare(record.get(rule.field), operator, expected)

    def check_accuracy(self, records: List[Record], rules: AccuracyRules) -> MetricResult:
        if not records:
            return MetricResult(score=1.0, meets_threshold=True)

        reference = {
            _fingerprint(row.get(rules.key_field)): row
            for row in rules.reference_data
            if row.get(rules.key_field) is not None
        }
        stats = {field: {"matches": 0, "total": 0} for field in rules.compare_fields}
        accurate = 0

        for record in records:
            match = reference.get(_fingerprint(record.get(rules.key_field)))
            if match is None:
                continue

            record_accurate = True
            for field in rules.compare_fields:
                stats[field]["total"] += 1
                if record.get(field) == match.get(field):
                    stats[field]["matches"] += 1
                else:
                    record_accurate = False
            if record_accurate:
                accurate += 1

        field_results = {}
        issues = []
        for field, counts in stats.items():
            accuracy = counts["matches"] / counts["total"] if counts["total"] else 1.0
            field_results[field] = {"accuracy": accuracy, **counts}
            if accuracy < self.thresholds.accuracy:
                issues.append(
                    f"Field '{field}' accuracy is {accuracy * 100:.1f}% "
                    f"({counts['matches']}/{counts['total']} matches)"
                )

        score = accurate / len(records)
        return MetricResult(
            score=score,
            issues=issues,
            meets_threshold=score >= self.thresholds.accuracy,
            field_results=field_results,
            details={"accurateRecords": accurate, "totalRecords": len(records)},
        )

    def check_timeliness(self, records: List[Record], rules: TimelinessRules) -> MetricResult:
        if not records:
            return MetricResult(score=1.0, meets_threshold=True)

        now = pd.Timestamp.now(tz="UTC")
        dates = [_parse_date(record.get(rules.date_field)) for record in records]
        timely = sum(
            1 for date in dates
            if date is not None and (now - date).total_seconds() <= rules.max_age
        )

        total = len(records)
        score = timely / total
        issues = []
        if score < self.thresholds.timeliness:
            issues.append(f"{total - timely} records are older than {rules.max_age:g} seconds")

        return MetricResult(
            score=score,
            issues=issues,
            meets_threshold=score >= self.thresholds.timeliness,
            details={"timelyRecords": timely, "totalRecords": total, "maxAge": rules.max_age},
        )

    # ------------------------------------------------------------------
    # Schema
    # ------------------------------------------------------------------

    def validate_schema_consistency(
        self,
        records: Sequence[Record],
        expected_schema: Mapping[str, Union[FieldType, str]],
    ) -> SchemaConsistencyResult:
        """
        Compare the first record's shape against ``{field: type}``.

        Reports missing fields, unexpected fields and type mismatches;
        null values are not type-checked.
        """
        if not records:
            return SchemaConsistencyResult(consistent=True)

        sample = records[0]
        issues = []

        missing = [field for field in expected_schema if field not in sample]
        if missing:
            issues.append(f"Missing expected fields: {', '.join(missing)}")

        extra = [field for field in sample if field not in expected_schema]
        if extra:
            issues.append(f"Unexpected fields found: {', '.join(extra)}")

        for field, expected_type in expected_schema.items():
            if field not in sample or sample[field] is None:
                continue
            expected_type = FieldType(expected_type)
            if not matches_type(sample[field], expected_type):
                issues.append(
                    f"Field '{field}' expected type {expected_type.value}, got {type_name(sample[field])}"
                )

        if issues:
            logger.warning(f"Schema inconsistency: {'; '.join(issues)}")
        return SchemaConsistencyResult(consistent=not issues, issues=issues)
