"""API Routes for BreadBase."""

from breadbase.infrastructure.api.routes.bread_router import router as bread_router
from breadbase.infrastructure.api.routes.database_router import router as database_router

__all__ = [
    "bread_router",
    "database_router",
]
