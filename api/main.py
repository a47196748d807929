"""
FastAPI application initialization
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from api.routes import health, jobs, quality, stats
from api.middleware import RequestContextMiddleware
from core.config import settings
from core.exceptions import (
    ConcurrencyLimitExceeded,
    ETLException,
    InvalidJobTransition,
    JobAlreadyRunning,
    JobExecutionFailed,
    JobNotFound,
    QualityCheckError,
    TransformationError,
    ValidationError,
)
from core.logging import setup_logging
from ingestion.job_manager import build_job_manager
from ingestion.monitoring import ETLMonitor
from ingestion.scheduler import ETLScheduler
from quality.reports import QualityReportStore
import logging

setup_logging()

logger = logging.getLogger(__name__)

# Most specific class first
STATUS_CODES = [
    (ValidationError, 422),
    (QualityCheckError, 422),
    (JobNotFound, 404),
    (JobAlreadyRunning, 409),
    (InvalidJobTransition, 409),
    (ConcurrencyLimitExceeded, 429),
    (JobExecutionFailed, 500),
    (TransformationError, 422),
]

# Create FastAPI app
app = FastAPI(
    title="ETL Job Manager API",
    description="ETL job lifecycle and data quality assessment service",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(RequestContextMiddleware)

app.include_router(health.router)
app.include_router(jobs.router)
app.include_router(quality.router)
app.include_router(stats.router)


def status_code_for(exc: ETLException) -> int:
    for exc_type, code in STATUS_CODES:
        if isinstance(exc, exc_type):
            return code
    return 500


@app.exception_handler(ETLException)
async def etl_exception_handler(request: Request, exc: ETLException):
    code = status_code_for(exc)
    request_id = getattr(request.state, "request_id", None)
    if code >= 500:
        logger.error(f"[{request_id}] {exc}")
    else:
        logger.info(f"[{request_id}] {exc.__class__.__name__}: {exc.message}")
    return JSONResponse(status_code=code, content=exc.to_dict())


@app.on_event("startup")
async def startup_event():
    """Application startup event"""
    logger.info("Starting ETL Job Manager API")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Job store: {settings.JOB_STORE}")

    manager = build_job_manager()
    await manager.initialize()

    monitor = ETLMonitor(manager, QualityReportStore(settings.REPORTS_PATH))
    monitor.initialize()
    monitor.attach()

    app.state.job_manager = manager
    app.state.monitor = monitor
    app.state.background_tasks = set()
    app.state.scheduler = None

    if settings.SCHEDULER_ENABLED:
        scheduler = ETLScheduler(manager, monitor)
        scheduler.start()
        app.state.scheduler = scheduler


@app.on_event("shutdown")
async def shutdown_event():
    """Application shutdown event"""
    logger.info("Shutting down ETL Job Manager API")

    if app.state.scheduler is not None:
        app.state.scheduler.stop()
    await app.state.monitor.shutdown()


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "ETL Job Manager API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health",
        "endpoints": {
            "jobs": "/jobs",
            "quality": "/quality/assess",
            "stats": "/stats"
        }
    }
