"""
API Module
"""
from .main import create_api_app
from .middleware import RequestContextMiddleware

__all__ = [
    "create_api_app",
    "RequestContextMiddleware",
]
