"""
Upload workflow: compare parsed files, then publish the reviewed result.

Step 1 (compare) is read-only. Step 2 (publish) refuses to run while
any conflict is still open.
"""

from uuid import uuid4
import structlog

from config import ListKind, get_list_config
from models.plu import (
    ParsedFile,
    PLUItem,
    UploadPreview,
)
from models.version import PublishResult
from services.comparison_service import (
    assign_item_types,
    compare_with_current_version,
    resolve_conflicts,
    unresolved_conflicts,
)
from services.publish_service import get_publish_service
from services.version_service import get_version_service
from exceptions import UnresolvedConflictsError
from utils.week_utils import version_exists_for_week

logger = structlog.get_logger(__name__)


class UploadService:
    """Compare and publish for one list kind."""

    def __init__(self, list_kind: ListKind = ListKind.PRODUCE):
        self.config = get_list_config(list_kind)
        self.versions = get_version_service(list_kind)
        self.publisher = get_publish_service(list_kind)

    def compare(
        self,
        files: list[ParsedFile],
        week_number: int,
        year: int,
        confirm_swap: bool = False
    ) -> UploadPreview:
        """
        Compare parsed files against the active version.

        Previous items come from every frozen version, so a product that
        came back under a new code is recognised even after a gap. A PLU
        in both files is kept from the first one and counted as a
        duplicate in the second.

        Raises:
            AmbiguousFileTypesError: Two files of the same type, swap not confirmed
            ValidationError: Too many files or an unsupported item type
        """
        assigned = assign_item_types(files, self.config.item_types, confirm_swap)

        active = self.versions.get_active()
        current_items: list[PLUItem] = []
        previous_items: list[PLUItem] = []
        if active is not None:
            current_items = self.versions.get_items([active.id])
            frozen_ids = [v.id for v in self.versions.get_frozen()]
            previous_items = self.versions.get_items(frozen_ids)

        new_version_id = str(uuid4())
        # A PLU listed in both files goes to whichever file comes first
        seen_plus: set[str] = set()
        comparisons = [
            compare_with_current_version(
                incoming_rows=parsed.rows,
                item_type=parsed.item_type,
                current_items=current_items,
                previous_items=previous_items,
                new_version_id=new_version_id,
                is_first_upload=active is None,
                seen_plus=seen_plus,
            )
            for parsed in assigned
            if parsed.rows
        ]

        preview = UploadPreview(
            new_version_id=new_version_id,
            week_number=week_number,
            year=year,
            is_first_upload=active is None,
            comparisons=comparisons,
            conflicts=[c for comparison in comparisons for c in comparison.conflicts],
            version_exists=version_exists_for_week(week_number, year, self.versions.get_all()),
        )

        logger.info(
            "upload_compared",
            list_kind=self.config.kind.value,
            week_number=week_number,
            year=year,
            **preview.summary.model_dump()
        )
        return preview

    def publish(
        self,
        preview: UploadPreview,
        created_by: str,
        replace_existing: bool = False
    ) -> PublishResult:
        """
        Publish a compared upload.

        Raises:
            UnresolvedConflictsError: At least one conflict has no resolution
            VersionExistsError / PublishError: From the publisher
        """
        open_conflicts = unresolved_conflicts(preview.conflicts)
        if open_conflicts:
            raise UnresolvedConflictsError([c.plu for c in open_conflicts])

        items = preview.all_items + resolve_conflicts(preview.conflicts, preview.new_version_id)

        return self.publisher.publish_version(
            week_number=preview.week_number,
            year=preview.year,
            items=items,
            created_by=created_by,
            replace_existing=replace_existing,
        )


# Singleton instances per list kind
_upload_services: dict[ListKind, UploadService] = {}

def get_upload_service(list_kind: ListKind = ListKind.PRODUCE) -> UploadService:
    """Get or create UploadService instance."""
    list_kind = ListKind(list_kind)
    if list_kind not in _upload_services:
        _upload_services[list_kind] = UploadService(list_kind)
    return _upload_services[list_kind]
