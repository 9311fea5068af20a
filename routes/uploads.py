"""
Upload API routes: compare, then publish.

Mounted under /api/{list_kind}/uploads. Spreadsheet parsing happens in
the client; these routes receive parsed rows.
"""

from fastapi import APIRouter
import structlog

from config import ListKind
from models.plu import UploadCompareRequest, UploadPreview, UploadPublishRequest
from models.version import PublishResult
from services.upload_service import get_upload_service
from routes.errors import handle_error

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.post("/compare", response_model=UploadPreview)
async def compare_upload(list_kind: ListKind, data: UploadCompareRequest):
    """
    Compare parsed files with the active version.

    Raises:
        422: Too many files, or two files of the same type without confirm_swap
    """
    try:
        return get_upload_service(list_kind).compare(
            files=data.files,
            week_number=data.week_number,
            year=data.year,
            confirm_swap=data.confirm_swap,
        )
    except Exception as e:
        return handle_error(e)


@router.post("/publish", response_model=PublishResult, status_code=201)
async def publish_upload(list_kind: ListKind, data: UploadPublishRequest):
    """
    Publish a compared upload.

    Raises:
        409: Unresolved conflicts, or the week exists and replace_existing is false
        500: A write failed; the previous version stays active
    """
    try:
        return get_upload_service(list_kind).publish(
            preview=data.preview,
            created_by=data.created_by,
            replace_existing=data.replace_existing,
        )
    except Exception as e:
        return handle_error(e)
