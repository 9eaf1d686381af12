"""
API Routes Module
"""
from .dashboard import router as dashboard_router
from .health import router as health_router
from .imports import router as imports_router
from .pricing import router as pricing_router
from .seasons import router as seasons_router

__all__ = [
    "dashboard_router",
    "health_router",
    "imports_router",
    "pricing_router",
    "seasons_router",
]
