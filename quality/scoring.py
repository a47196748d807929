"""
Overall score weighting and recommendation rules
"""

from typing import Dict, List
from schemas.quality import QualityMetrics, QualityThresholds, Recommendation

WEIGHTS: Dict[str, float] = {
    "completeness": 0.25,
    "uniqueness": 0.20,
    "validity": 0.25,
    "consistency": 0.15,
    "accuracy": 0.10,
    "timeliness": 0.05,
}


def overall_score(metrics: QualityMetrics) -> float:
    """
    Weighted mean of the computed metrics.

    Metrics that were not evaluated (accuracy, timeliness without rules)
    drop out of both the sum and the weight total.
    """
    total_score = 0.0
    total_weight = 0.0

    for name, result in metrics.computed().items():
        weight = WEIGHTS[name]
        total_score += result.score * weight
        total_weight += weight

    if total_weight == 0:
        return 0.0
    return max(0.0, min(1.0, total_score / total_weight))


# (metric, priority, message, actions)
_METRIC_RECOMMENDATIONS = [
    (
        "completeness",
        "high",
        "Implement data validation at source to prevent missing values",
        [
            "Add required field validation",
            "Set up data monitoring alerts",
            "Review data collection processes",
        ],
    ),
    (
        "uniqueness",
        "medium",
        "Remove duplicate records and prevent future duplicates",
        [
            "Implement deduplication process",
            "Add unique constraints at database level",
            "Review data entry procedures",
        ],
    ),
    (
        "validity",
        "high",
        "Improve data format validation and standardization",
        [
            "Implement input validation rules",
            "Standardize data formats",
            "Add data transformation steps",
        ],
    ),
    (
        "consistency",
        "medium",
        "Resolve cross-field inconsistencies in source records",
        [
            "Review failing consistency rules",
            "Add cross-field validation at source",
        ],
    ),
    (
        "accuracy",
        "high",
        "Reconcile records that disagree with reference data",
        [
            "Review mismatched fields against the reference dataset",
            "Refresh reference data",
        ],
    ),
    (
        "timeliness",
        "low",
        "Refresh stale records more frequently",
        [
            "Increase extraction frequency",
            "Check upstream update schedules",
        ],
    ),
]


def generate_recommendations(
    metrics: QualityMetrics,
    anomaly_count: int,
    thresholds: QualityThresholds,
) -> List[Recommendation]:
    """One recommendation per metric below its threshold, plus one for anomalies"""
    computed = metrics.computed()
    recommendations = []

    for name, priority, message, actions in _METRIC_RECOMMENDATIONS:
        result = computed.get(name)
        if result is not None and result.score < getattr(thresholds, name):
            recommendations.append(Recommendation(
                type=name,
                priority=priority,
                message=message,
                actions=list(actions),
            ))

    if anomaly_count > 0:
        recommendations.append(Recommendation(
            type="anomalies",
            priority="medium",
            message=f"Found {anomaly_count} data anomalies that need investigation",
            actions=[
                "Review flagged anomalies",
                "Implement anomaly detection monitoring",
                "Update data validation rules",
            ],
        ))

    return recommendations
