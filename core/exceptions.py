"""
Custom exceptions for the ETL job manager with structured error context.

This module provides the exception hierarchy used throughout job
execution. Each exception includes context information for debugging and
is rendered by the API through ``to_dict()``.

Exception Hierarchy:
    ETLException (base)
    ├── ExtractionError
    │   ├── UnsupportedSourceKind
    │   └── APIExtractionError
    ├── TransformationError
    │   └── RecordValidationError
    ├── QualityCheckError
    ├── LoadError
    │   └── UnsupportedTargetKind
    └── JobError
        ├── ValidationError
        ├── JobNotFound
        ├── JobAlreadyRunning
        ├── ConcurrencyLimitExceeded
        ├── InvalidJobTransition
        ├── JobInterrupted
        └── JobExecutionFailed
"""

from typing import Optional, Dict, Any, List
from datetime import datetime, timezone


class ETLException(Exception):
    """
    Base exception for all ETL-related errors.

    Attributes:
        message: Human-readable error message
        context: Additional context information (job id, source, etc.)
        original_exception: The original exception that was caught (if any)
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        self.message = message
        self.context = context or {}
        self.original_exception = original_exception
        self.timestamp = datetime.now(timezone.utc)

        # Add timestamp to context
        self.context["error_timestamp"] = self.timestamp.isoformat()

        # Chain original exception if provided
        super().__init__(message)
        if original_exception:
            self.__cause__ = original_exception

    def __str__(self) -> str:
        """Format error message with context."""
        base_msg = f"{self.__class__.__name__}: {self.message}"

        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            base_msg += f" | Context: {context_str}"

        if self.original_exception:
            base_msg += f" | Caused by: {type(self.original_exception).__name__}: {str(self.original_exception)}"

        return base_msg

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/storage."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "context": {k: _jsonable(v) for k, v in self.context.items()},
            "timestamp": self.timestamp.isoformat(),
            "original_error": str(self.original_exception) if self.original_exception else None
        }


def _jsonable(value: Any) -> Any:
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    if isinstance(value, dict):
        return {str(k): _jsonable(v) for k, v in value.items()}
    return str(value)


# ============================================================================
# Extraction Errors
# ============================================================================

class ExtractionError(ETLException):
    """Base exception for data extraction failures."""
    pass


class UnsupportedSourceKind(ExtractionError):
    """
    Raised when a source spec names a kind with no registered extractor.

    Context should include:
        - source_type: The requested kind
    """
    pass


class APIExtractionError(ExtractionError):
    """
    Exception raised when API data extraction fails.

    Context should include:
        - api_url: The API endpoint that failed
        - status_code: HTTP status code (if applicable)
        - response_body: Response body (truncated if large)
    """

    @property
    def status_code(self) -> Optional[int]:
        return self.context.get("status_code")


# ============================================================================
# Transformation Errors
# ============================================================================

class TransformationError(ETLException):
    """Base exception for data transformation failures."""
    pass


class RecordValidationError(TransformationError):
    """
    Raised when a single record fails a field schema.

    Only surfaces to callers of ``validate_record``; the ``validate``
    transformation catches it per record.

    Context should include:
        - errors: List of violated rules
    """

    @property
    def errors(self) -> List[str]:
        return self.context.get("errors", [])


# ============================================================================
# Quality Check Errors
# ============================================================================

class QualityCheckError(ETLException):
    """Raised when the quality check stage cannot produce a report."""
    pass


# ============================================================================
# Load Errors
# ============================================================================

class LoadError(ETLException):
    """
    Base exception for data loading failures.

    Per-record failures are reported through ``LoadResult`` instead; this is
    raised only when the load cannot be attempted at all.
    """
    pass


class UnsupportedTargetKind(LoadError):
    """Raised when a target spec names a kind with no registered loader."""
    pass


# ============================================================================
# Job Lifecycle Errors
# ============================================================================

class JobError(ETLException):
    """Base exception for job lifecycle failures."""

    @property
    def job_id(self) -> Optional[str]:
        return self.context.get("job_id")


class ValidationError(JobError):
    """
    Exception raised when a job definition fails validation.

    Context should include:
        - fields: Names of the violated fields
        - errors: Field-level error details
    """

    @property
    def fields(self) -> List[str]:
        return self.context.get("fields", [])


class JobNotFound(JobError):
    """Raised when a job id is unknown to the manager."""
    pass


class JobAlreadyRunning(JobError):
    """Raised when execution is requested for a job that is already running."""
    pass


class ConcurrencyLimitExceeded(JobError):
    """
    Raised when the in-flight set has reached the concurrency cap.

    Caller-recoverable: no state changes; retry later.
    """
    pass


class InvalidJobTransition(JobError):
    """
    Raised when a lifecycle operation is not allowed from the job's status.

    Context should include:
        - current_status: Status of the job
        - requested: Requested operation
    """
    pass


class JobInterrupted(JobError):
    """Raised by the runner at a stage boundary after a pause or cancel."""
    pass


class JobExecutionFailed(JobError):
    """
    Raised from ``execute_job`` when a pipeline stage fails.

    The failure is recorded on the job before this is raised;
    ``original_exception`` holds the stage error.
    """
    pass
