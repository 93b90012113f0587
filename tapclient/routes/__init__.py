"""
Routes module - contains all API route handlers
"""

from .queries import router as queries_router
from .settings import router as settings_router

__all__ = [
    "queries_router",
    "settings_router",
]
