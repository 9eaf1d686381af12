"""
FastAPI Production Application

Main entry point for the KÜHL Merchandising Analytics API.
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from kuhl_analytics.config import get_settings
from kuhl_analytics.config.logging import configure_logging
from kuhl_analytics.database.connection import close_database, init_database
from kuhl_analytics.errors import StoreUnavailable
from kuhl_analytics.serving.api.main import create_api_app

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    configure_logging()
    settings = get_settings()

    logger.info("Starting KÜHL Merchandising Analytics API", environment=settings.app_env)

    # Dashboards fall back to the snapshot and raw files without a database
    try:
        await init_database()
        logger.info("Database initialized")
    except StoreUnavailable as e:
        logger.warning("Database init failed, serving from fallback sources", error=str(e))

    yield

    logger.info("Shutting down...")
    await close_database()


app = create_api_app(lifespan=lifespan)


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
