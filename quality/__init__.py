"""
Data quality assessment.

Modules:
    checker: DataQualityChecker with the six quality metrics and schema checks
    anomalies: Statistical outlier and rare pattern detection
    scoring: Metric weights, overall score and recommendations
    reports: File store for saved quality reports

Usage:
    from quality.checker import DataQualityChecker

    report = DataQualityChecker().perform_quality_checks(records, {
        "completeness": {"requiredFields": ["id", "email"]},
        "anomalies": {"numericFields": ["amount"]},
    })
    print(report.overall_score)
"""

__all__ = [
    "DataQualityChecker",
    "QualityReportStore",
    "detect_anomalies",
    "overall_score",
    "generate_recommendations",
]
