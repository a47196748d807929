"""
Statistical and pattern anomaly detection
"""

import re
from collections import Counter
from typing import List, Optional, Sequence, Union
import pandas as pd
from core.validation import to_number
from schemas.quality import AnomalyRules, PatternAnomaly, StatisticalOutlier
from ingestion.extractors.base import Record
import logging

logger = logging.getLogger(__name__)

_DIGIT = re.compile(r"\d")
_LOWER = re.compile(r"[a-z]")
_UPPER = re.compile(r"[A-Z]")
_SPACE = re.compile(r"\s")


def extract_pattern(value: str) -> str:
    """Shape of a value: digits -> 9, lowercase -> a, uppercase -> A, whitespace -> _"""
    value = _DIGIT.sub("9", value)
    value = _LOWER.sub("a", value)
    value = _UPPER.sub("A", value)
    return _SPACE.sub("_", value)


def detect_statistical_outliers(
    records: Sequence[Record],
    fields: Sequence[str],
    threshold: float,
) -> List[StatisticalOutlier]:
    """
    Flag values more than ``threshold`` population standard deviations from
    the field mean. Fields with no spread are skipped.
    """
    outliers = []

    for field in fields:
        column = pd.Series([to_number(record.get(field)) for record in records], dtype="float64")
        present = column.dropna()
        if present.empty:
            continue

        mean = float(present.mean())
        std_dev = float(present.std(ddof=0))
        if std_dev == 0:
            logger.debug(f"Skipping outlier detection for '{field}': zero spread")
            continue

        z_scores = (column - mean).abs() / std_dev
        for index in z_scores[z_scores > threshold].index:
            value = float(column[index])
            z_score = float(z_scores[index])
            outliers.append(StatisticalOutlier(
                field=field,
                record_index=int(index),
                value=value,
                z_score=z_score,
                mean=mean,
                std_dev=std_dev,
                description=f"Value {value:g} is {z_score:.2f} standard deviations from mean",
            ))

    return outliers


def detect_pattern_anomalies(
    records: Sequence[Record],
    fields: Sequence[str],
    rare_ratio: float,
) -> List[PatternAnomaly]:
    """Flag values whose shape occurs in fewer than ``rare_ratio`` of the present values"""
    anomalies = []

    for field in fields:
        patterns = [
            (index, record.get(field), extract_pattern(str(record.get(field))))
            for index, record in enumerate(records)
            if record.get(field) is not None
        ]
        total = len(patterns)
        if not total:
            continue

        counts = Counter(pattern for _, _, pattern in patterns)
        rare_limit = total * rare_ratio

        for index, value, pattern in patterns:
            count = counts[pattern]
            if 0 < count < rare_limit:
                percentage = round(count / total * 100, 2)
                anomalies.append(PatternAnomaly(
                    field=field,
                    record_index=index,
                    value=value,
                    pattern=pattern,
                    occurrences=count,
                    percentage=percentage,
                    description=(
                        f"Unusual pattern '{pattern}' occurs in only {count} records "
                        f"({percentage:.2f}%)"
                    ),
                ))

    return anomalies


def detect_anomalies(
    records: Sequence[Record],
    rules: Optional[AnomalyRules],
    std_dev_threshold: float = 3.0,
    rare_pattern_ratio: float = 0.05,
) -> List[Union[StatisticalOutlier, PatternAnomaly]]:
    """Run both detectors; rule values override the given defaults"""
    if not records or rules is None:
        return []

    threshold = rules.std_dev_threshold or std_dev_threshold
    ratio = rules.rare_pattern_ratio or rare_pattern_ratio

    anomalies: List[Union[StatisticalOutlier, PatternAnomaly]] = []
    anomalies.extend(detect_statistical_outliers(records, rules.numeric_fields, threshold))
    anomalies.extend(detect_pattern_anomalies(records, rules.pattern_fields, ratio))
    return anomalies
