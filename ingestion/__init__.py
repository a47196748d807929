"""
ETL pipeline components and the job manager.

Modules:
    runner: Single-job Extract → Transform → Quality → Load pipeline
    job_manager: Job lifecycle, concurrency cap, persistence and events
    events: Ordered lifecycle notifications to subscribers and queues
    monitoring: Status summaries, quality trends, alerts and reports
    scheduler: APScheduler integration for pending jobs and monitoring

Subpackages:
    extractors: Source kinds (JSON file, CSV file, database, API)
    transformers: Declarative filter, map, aggregate, deduplicate, validate
    loaders: Target kinds (JSON file, CSV file, database, API)

Architecture:
    The job manager drives one ETLRunner per execution:

    1. Extract - Read the full record sequence from the source
    2. Transform - Apply the job's transformations in order
    3. Quality - Score the transformed records and detect anomalies
    4. Load - Write to the target, counting per-record failures

    A stage failure fails the job; per-record load failures only count.

Usage:
    from ingestion.job_manager import ETLJobManager

    manager = ETLJobManager(max_concurrent_jobs=3)
    await manager.initialize()

    job = await manager.create_job({
        "name": "active customers",
        "source": {"type": "json_file", "config": {"filePath": "customers.json"}},
        "target": {"type": "csv_file", "config": {"filePath": "active.csv"}},
        "transformations": {"filter": {"field": "status", "operator": "equals", "value": "active"}},
    })
    job = await manager.execute_job(job.id)

    print(f"Loaded {job.result.loaded_count} records")

Error Handling:
    All components raise the structured exceptions from core.exceptions.
"""

__all__ = [
    "ETLRunner",
    "ETLJobManager",
    "EventBus",
    "JobEventType",
    "ETLMonitor",
    "ETLScheduler",
    "DataExtractor",
    "DataTransformer",
    "DataLoader",
    "LoadResult",
]
