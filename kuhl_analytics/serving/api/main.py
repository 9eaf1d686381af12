"""
FastAPI Application Factory

Creates and configures the merchandising analytics API.
"""

from typing import Any, Callable, Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from kuhl_analytics.config import get_settings
from kuhl_analytics.errors import DashboardError
from kuhl_analytics.serving.api.middleware import RequestContextMiddleware
from kuhl_analytics.serving.api.routes import (
    dashboard_router,
    health_router,
    imports_router,
    pricing_router,
    seasons_router,
)

logger = structlog.get_logger(__name__)


async def dashboard_error_handler(request: Request, exc: DashboardError) -> JSONResponse:
    """Render domain errors as ``{success: false, error, kind}``."""
    logger.warning(
        "Request failed",
        path=request.url.path,
        kind=exc.kind.value,
        error=exc.message,
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def create_api_app(lifespan: Optional[Callable[[FastAPI], Any]] = None) -> FastAPI:
    """
    Create and configure FastAPI application.

    Args:
        lifespan: Startup/shutdown context; tests pass None and manage the
            database themselves

    Returns:
        Configured FastAPI app instance
    """
    settings = get_settings()
    app = FastAPI(
        title="KÜHL Merchandising Analytics API",
        description="Season-scoped imports, pricing and cost waterfalls, and sales dashboards",
        version=settings.version,
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.security.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(RequestContextMiddleware)

    app.add_exception_handler(DashboardError, dashboard_error_handler)

    app.include_router(health_router, prefix="/api/v1", tags=["Health"])
    app.include_router(imports_router, prefix="/api/v1/data", tags=["Imports"])
    app.include_router(seasons_router, prefix="/api/v1/seasons", tags=["Seasons"])
    app.include_router(dashboard_router, prefix="/api/v1/dashboard", tags=["Dashboard"])
    app.include_router(pricing_router, prefix="/api/v1/pricing", tags=["Pricing"])

    @app.get("/api/v1/info")
    async def api_info():
        """API information endpoint."""
        return {
            "name": settings.app_name,
            "version": settings.version,
            "environment": settings.app_env,
            "documentation": "/docs",
        }

    return app
