"""
Version API routes.

Mounted under /api/{list_kind}/versions.
"""

from fastapi import APIRouter
import structlog

from config import ListKind
from models.plu import PLUItem
from models.version import VersionResponse
from services.version_service import get_version_service
from services.naming_rule_service import get_naming_rule_service
from services.catalog_service import get_catalog_service
from exceptions import VersionNotFoundError
from routes.errors import handle_error
from utils.week_utils import (
    clamp_week,
    current_week_and_year,
    next_free_week,
    week_options_for_upload,
    year_options_for_upload,
)

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get("", response_model=list[VersionResponse])
async def list_versions(list_kind: ListKind):
    """All versions, newest first."""
    try:
        return get_version_service(list_kind).get_all()
    except Exception as e:
        return handle_error(e)


@router.get("/active", response_model=VersionResponse)
async def get_active_version(list_kind: ListKind):
    """
    The active version.

    Raises:
        404: No version published yet
    """
    try:
        service = get_version_service(list_kind)
        version = service.get_active() or service.ensure_active_version()
        if version is None:
            raise VersionNotFoundError("active")
        return version
    except Exception as e:
        return handle_error(e)


@router.get("/week-options")
async def get_week_options(list_kind: ListKind):
    """
    Selectable weeks/years for an upload and a suggested week.

    The suggestion is the next free week, kept inside the selectable range.
    """
    try:
        current_week, current_year = current_week_and_year()
        versions = get_version_service(list_kind).get_all()
        return {
            "weeks": week_options_for_upload(current_week),
            "years": year_options_for_upload(current_year),
            "suggested_week": clamp_week(
                next_free_week(current_week, current_year, versions),
                current_week
            ),
            "current_week": current_week,
            "current_year": current_year,
        }
    except Exception as e:
        return handle_error(e)


@router.get("/{version_id}", response_model=VersionResponse)
async def get_version(list_kind: ListKind, version_id: str):
    """
    A single version.

    Raises:
        404: Version not found
    """
    try:
        return get_version_service(list_kind).get_by_id(version_id)
    except Exception as e:
        return handle_error(e)


@router.get("/{version_id}/items", response_model=list[PLUItem])
async def get_version_items(list_kind: ListKind, version_id: str):
    """Stored items of a version (no display rules applied)."""
    try:
        service = get_version_service(list_kind)
        service.get_by_id(version_id)
        return service.get_items([version_id])
    except Exception as e:
        return handle_error(e)


@router.post("/{version_id}/apply-naming-rules")
async def apply_naming_rules(list_kind: ListKind, version_id: str):
    """Write rule-derived display names into the version's items."""
    try:
        get_version_service(list_kind).get_by_id(version_id)
        updated = get_naming_rule_service(list_kind).apply_to_version(version_id)
        return {"updated": updated}
    except Exception as e:
        return handle_error(e)


@router.post("/{version_id}/apply-category-rules")
async def apply_category_rules(list_kind: ListKind, version_id: str, only_unassigned: bool = True):
    """Assign categories to the version's items by keyword rules."""
    try:
        get_version_service(list_kind).get_by_id(version_id)
        updated = get_catalog_service(list_kind).assign_categories_by_rules(version_id, only_unassigned)
        return {"updated": updated}
    except Exception as e:
        return handle_error(e)
