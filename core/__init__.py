"""
Core utilities and configuration for the ETL job manager.

This package provides foundational components used throughout the pipeline:

Modules:
    config: Application configuration and environment variable management
    database: Async engine, session and connection helpers
    exceptions: Custom exception hierarchy for error handling
    logging: Logging configuration and utilities
    validation: Field type checks, comparisons and record schema validation
    files: Atomic file writes

Usage:
    from core.config import settings
    from core.logging import setup_logging
    from core.exceptions import JobNotFound, ExtractionError

Example:
    # Initialize logging
    setup_logging()

    # Validate a record against a field schema
    validate_record({"name": "Ada"}, {"name": {"required": True, "type": "string"}})
"""

__all__ = [
    "settings",
    "setup_logging",
    "create_engine",
    "create_session_maker",
    "connect",
    "matches_type",
    "validate_record",
    "compare",
    "atomic_write",
    # Exceptions
    "ETLException",
    "ExtractionError",
    "UnsupportedSourceKind",
    "APIExtractionError",
    "TransformationError",
    "RecordValidationError",
    "QualityCheckError",
    "LoadError",
    "UnsupportedTargetKind",
    "JobError",
    "ValidationError",
    "JobNotFound",
    "JobAlreadyRunning",
    "ConcurrencyLimitExceeded",
    "InvalidJobTransition",
    "JobInterrupted",
    "JobExecutionFailed",
]
