import asyncio
import logging
import sys
import os

# Add current directory to path to allow imports from core, models, etc.
sys.path.append(os.getcwd())

from core.config import settings
from core.database import create_engine
from core.logging import setup_logging
from repositories.sql_repository import SQLJobRepository

setup_logging()
logger = logging.getLogger(__name__)


async def init_database():
    """Create the etl_jobs table used by the database job store"""
    logger.info("Connecting to database...")
    engine = create_engine(settings.DATABASE_URL)

    try:
        logger.info("Creating tables...")
        await SQLJobRepository(engine).initialize()
        logger.info("Tables created successfully.")
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(init_database())
