"""
Pydantic schemas for validation and serialization.

Every schema extends ``CamelModel``: snake_case attributes, camelCase JSON.

Schemas:
    base: CamelModel base class
    transform: Field rules and transformation configs
    quality: Quality rules, thresholds and the quality report
    job: Job definitions and the job entity
    monitoring: Status summaries, alerts and comprehensive reports
    api: API endpoint request/response schemas

Usage:
    from schemas.job import Job, JobDefinition
    from schemas.quality import QualityReport, QualityThresholds

Example:
    definition = JobDefinition.model_validate({
        "name": "orders",
        "source": {"type": "api", "config": {"url": "https://example.com/orders"}},
        "target": {"type": "json_file", "config": {"filePath": "orders.json"}},
    })
    assert definition.transformations == {}
"""

__all__ = [
    "CamelModel",
    "FieldRule",
    "JobDefinition",
    "Job",
    "JobMetrics",
    "JobResult",
    "DataQualityRules",
    "QualityThresholds",
    "QualityReport",
    "HealthResponse",
    "StatsResponse",
]
