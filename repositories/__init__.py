"""
Durable job storage.

Modules:
    base: JobRepository interface and the in-memory implementation
    file_repository: One JSON document per job on disk
    sql_repository: One row per job in the ``etl_jobs`` table
"""

__all__ = [
    "JobRepository",
    "InMemoryJobRepository",
    "FileJobRepository",
    "SQLJobRepository",
]
