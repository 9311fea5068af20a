"""
Display list route.

Mounted under /api/{list_kind}/display.
"""

from fastapi import APIRouter, Query
from typing import Optional

from config import ListKind
from models.display import DisplayList, SortMode
from services.display_service import get_display_service
from routes.errors import handle_error

router = APIRouter()


@router.get("", response_model=DisplayList)
async def get_display_list(
    list_kind: ListKind,
    version_id: Optional[str] = Query(None, description="Defaults to the active version"),
    sort_mode: Optional[SortMode] = Query(None, description="Overrides the stored sort mode")
):
    """
    Composed list as viewers see it, with stats.

    Raises:
        404: No active version
    """
    try:
        return get_display_service(list_kind).get_display_list(version_id, sort_mode)
    except Exception as e:
        return handle_error(e)
