"""
Unit tests for anomaly detection
"""

import pytest
from core.validation import to_number
from quality.anomalies import (
    detect_anomalies,
    detect_pattern_anomalies,
    detect_statistical_outliers,
    extract_pattern,
)
from schemas.quality import AnomalyRules


def column(values, field="v"):
    return [{field: v} for v in values]


class TestStatisticalOutliers:

    def test_single_outlier(self):
        records = column([1, 2, 3, 4] * 5 + [100])

        outliers = detect_statistical_outliers(records, ["v"], threshold=3.0)

        assert len(outliers) == 1
        assert outliers[0].record_index == 20
        assert outliers[0].value == 100
        assert outliers[0].z_score > 3.0

    def test_small_sample_with_lower_threshold(self):
        records = column([1, 2, 3, 4, 100])

        outliers = detect_statistical_outliers(records, ["v"], threshold=1.5)

        assert [o.record_index for o in outliers] == [4]
        assert outliers[0].mean == 22
        assert outliers[0].description == "Value 100 is 2.00 standard deviations from mean"

    def test_population_std_dev_bounds_small_samples(self):
        assert detect_statistical_outliers(column([1, 2, 3, 4, 100]), ["v"], threshold=3.0) == []

    def test_zero_spread_skipped(self):
        assert detect_statistical_outliers(column([5, 5, 5, 5]), ["v"], threshold=0.1) == []

    def test_non_numeric_values_ignored(self):
        records = column([1, 2, 3, 4] * 5 + [None, "n/a", True, "100"])

        outliers = detect_statistical_outliers(records, ["v"], threshold=3.0)

        assert [o.record_index for o in outliers] == [23]


class TestPatternAnomalies:

    def test_rare_shape_flagged(self):
        records = column(["AB-123"] * 20 + ["ab-12"], field="code")

        anomalies = detect_pattern_anomalies(records, ["code"], rare_ratio=0.05)

        assert len(anomalies) == 1
        assert anomalies[0].record_index == 20
        assert anomalies[0].pattern == "aa-99"
        assert anomalies[0].occurrences == 1
        assert anomalies[0].percentage == 4.76

    def test_missing_values_excluded(self):
        records = column(["AB-123"] * 10 + [None] * 10, field="code")

        assert detect_pattern_anomalies(records, ["code"], rare_ratio=0.5) == []

    def test_extract_pattern(self):
        assert extract_pattern("Ab 12-x") == "Aa_99-a"


class TestDetectAnomalies:

    def test_no_rules(self):
        assert detect_anomalies(column([1, 2, 100]), None) == []

    def test_no_records(self):
        assert detect_anomalies([], AnomalyRules(numeric_fields=["v"])) == []

    def test_rule_threshold_overrides_default(self):
        rules = AnomalyRules(numeric_fields=["v"], std_dev_threshold=1.5)

        anomalies = detect_anomalies(column([1, 2, 3, 4, 100]), rules, std_dev_threshold=3.0)

        assert len(anomalies) == 1
        assert anomalies[0].type == "statistical_outlier"

    def test_both_detectors(self):
        records = [{"v": v, "code": "AB-1"} for v in [1, 2, 3, 4] * 5] + [{"v": 100, "code": "x"}]
        rules = AnomalyRules(numeric_fields=["v"], pattern_fields=["code"])

        anomalies = detect_anomalies(records, rules)

        assert [a.type for a in anomalies] == ["statistical_outlier", "pattern_anomaly"]


@pytest.mark.parametrize("value, expected", [
    (3, 3.0),
    (" 2.5 ", 2.5),
    ("abc", None),
    (True, None),
    (None, None),
    (float("nan"), None),
])
def test_to_number(value, expected):
    assert to_number(value) == expected
