"""
API route modules.

Each module defines routes for one area; all are mounted per list kind.
"""

from routes.versions import router as versions_router
from routes.uploads import router as uploads_router
from routes.display import router as display_router
from routes.rules import router as rules_router
from routes.catalog import router as catalog_router
from routes.layout_settings import router as layout_settings_router

__all__ = [
    "versions_router",
    "uploads_router",
    "display_router",
    "rules_router",
    "catalog_router",
    "layout_settings_router",
]
