from sqlalchemy.orm import declarative_base
import enum

Base = declarative_base()


# ============================================================================
# ENUMS
# ============================================================================

class SourceKind(str, enum.Enum):
    """Data source kinds"""
    JSON_FILE = "json_file"
    CSV_FILE = "csv_file"
    DATABASE = "database"
    API = "api"


class TargetKind(str, enum.Enum):
    """Data target kinds"""
    JSON_FILE = "json_file"
    CSV_FILE = "csv_file"
    DATABASE = "database"
    API = "api"


class JobStatus(str, enum.Enum):
    """ETL job status"""
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    PAUSED = "paused"


class TransformationKind(str, enum.Enum):
    """Declarative transformation kinds"""
    FILTER = "filter"
    MAP = "map"
    AGGREGATE = "aggregate"
    DEDUPLICATE = "deduplicate"
    VALIDATE = "validate"


class QualityMetric(str, enum.Enum):
    """Data quality dimensions"""
    COMPLETENESS = "completeness"
    UNIQUENESS = "uniqueness"
    VALIDITY = "validity"
    CONSISTENCY = "consistency"
    ACCURACY = "accuracy"
    TIMELINESS = "timeliness"
