"""
Layout settings API routes.

Mounted under /api/{list_kind}/layout-settings.
"""

from fastapi import APIRouter

from config import ListKind
from models.layout_settings import LayoutSettingsResponse, LayoutSettingsUpdate
from services.layout_settings_service import get_layout_settings_service
from routes.errors import handle_error

router = APIRouter()


@router.get("", response_model=LayoutSettingsResponse)
async def get_layout_settings(list_kind: ListKind):
    """Current layout settings."""
    try:
        return get_layout_settings_service(list_kind).get()
    except Exception as e:
        return handle_error(e)


@router.patch("", response_model=LayoutSettingsResponse)
async def update_layout_settings(list_kind: ListKind, data: LayoutSettingsUpdate):
    """
    Update layout settings.

    Raises:
        504: Write took too long; reload and retry
    """
    try:
        return get_layout_settings_service(list_kind).update(data)
    except Exception as e:
        return handle_error(e)
