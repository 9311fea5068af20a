"""
Version storage and the version state machine.

All status changes go through transition(), which checks the move
against VERSION_TRANSITIONS and only updates the row if it is still in
the expected status. A concurrent change makes the update match zero
rows and raises instead of silently overwriting.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional
import structlog

from config import get_supabase_client, settings, ListKind, get_list_config
from models.plu import PLUItem
from models.version import (
    VersionResponse,
    VersionStatus,
    is_valid_version_transition,
)
from exceptions import (
    ConflictError,
    DatabaseError,
    InvalidStatusTransitionError,
    VersionNotFoundError,
)

logger = structlog.get_logger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class VersionService:
    """
    Version business logic for one list kind.

    Handles reads, draft creation, status transitions and deletion.
    """

    def __init__(self, list_kind: ListKind = ListKind.PRODUCE):
        self.db = get_supabase_client()
        self.config = get_list_config(list_kind)
        self.table = self.config.versions_table
        self.items_table = self.config.items_table

    # ===================
    # READ OPERATIONS
    # ===================

    def get_all(self) -> list[VersionResponse]:
        """All versions, newest (year, week) first."""
        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .order("year", desc=True)
                .order("week_number", desc=True)
                .execute()
            )
            return [VersionResponse(**row) for row in result.data]

        except Exception as e:
            logger.error("get_versions_failed", list_kind=self.config.kind.value, error=str(e))
            raise DatabaseError("select", str(e))

    def get_by_id(self, version_id: str) -> VersionResponse:
        """
        Get a single version.

        Raises:
            VersionNotFoundError: If the version doesn't exist
        """
        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("id", version_id)
                .execute()
            )
        except Exception as e:
            logger.error("get_version_failed", version_id=version_id, error=str(e))
            raise DatabaseError("select", str(e))

        if not result.data:
            raise VersionNotFoundError(version_id)
        return VersionResponse(**result.data[0])

    def get_active(self) -> Optional[VersionResponse]:
        """The active version, or None before the first publish."""
        versions = self._get_by_status(VersionStatus.ACTIVE)
        if len(versions) > 1:
            logger.warning(
                "multiple_active_versions",
                list_kind=self.config.kind.value,
                version_ids=[v.id for v in versions]
            )
        return versions[0] if versions else None

    def get_frozen(self) -> list[VersionResponse]:
        """Frozen versions, newest first."""
        return self._get_by_status(VersionStatus.FROZEN)

    def get_by_week(self, week_number: int, year: int) -> Optional[VersionResponse]:
        """Version for a calendar week, if one exists."""
        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("week_number", week_number)
                .eq("year", year)
                .execute()
            )
        except Exception as e:
            logger.error("get_version_by_week_failed", week_number=week_number, year=year, error=str(e))
            raise DatabaseError("select", str(e))

        return VersionResponse(**result.data[0]) if result.data else None

    def get_items(self, version_ids: list[str]) -> list[PLUItem]:
        """Items of one or more versions."""
        if not version_ids:
            return []

        try:
            query = self.db.table(self.items_table).select("*")
            if len(version_ids) == 1:
                query = query.eq("version_id", version_ids[0])
            else:
                query = query.in_("version_id", version_ids)
            result = query.execute()
            return [PLUItem(**row) for row in result.data]

        except Exception as e:
            logger.error("get_version_items_failed", count=len(version_ids), error=str(e))
            raise DatabaseError("select", str(e))

    def _get_by_status(self, status: VersionStatus) -> list[VersionResponse]:
        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("status", status.value)
                .order("year", desc=True)
                .order("week_number", desc=True)
                .execute()
            )
            return [VersionResponse(**row) for row in result.data]

        except Exception as e:
            logger.error("get_versions_by_status_failed", status=status.value, error=str(e))
            raise DatabaseError("select", str(e))

    # ===================
    # WRITE OPERATIONS
    # ===================

    def create_draft(self, week_number: int, year: int, created_by: str) -> VersionResponse:
        """Insert a new version in draft status."""
        logger.info("creating_draft_version", week_number=week_number, year=year)

        try:
            result = (
                self.db.table(self.table)
                .insert({
                    "week_number": week_number,
                    "year": year,
                    "status": VersionStatus.DRAFT.value,
                    "created_by": created_by,
                })
                .execute()
            )
        except Exception as e:
            logger.error("create_draft_version_failed", week_number=week_number, year=year, error=str(e))
            raise DatabaseError("insert", str(e))

        if not result.data:
            raise DatabaseError("insert", "no version row returned")
        return VersionResponse(**result.data[0])

    def transition(self, version: VersionResponse, new_status: VersionStatus) -> VersionResponse:
        """
        Move a version to a new status.

        Raises:
            InvalidStatusTransitionError: Move not allowed by the state machine
            ConflictError: The stored status changed since the version was read
        """
        new_status = VersionStatus(new_status)
        if not is_valid_version_transition(version.status, new_status):
            raise InvalidStatusTransitionError(version.status.value, new_status.value)

        now = _now()
        update_data: dict = {"status": new_status.value}
        if new_status == VersionStatus.ACTIVE:
            update_data["published_at"] = now.isoformat()
        elif new_status == VersionStatus.FROZEN:
            update_data["frozen_at"] = now.isoformat()
            update_data["delete_after"] = (
                now + timedelta(days=settings.freeze_retention_days)
            ).isoformat()

        try:
            result = (
                self.db.table(self.table)
                .update(update_data)
                .eq("id", version.id)
                .eq("status", version.status.value)
                .execute()
            )
        except Exception as e:
            logger.error(
                "version_transition_failed",
                version_id=version.id,
                to_status=new_status.value,
                error=str(e)
            )
            raise DatabaseError("update", str(e))

        if not result.data:
            raise ConflictError(
                f"Version {version.id} is no longer {version.status.value}",
                code="VERSION_STATE_CHANGED",
                details={"version_id": version.id, "expected_status": version.status.value}
            )

        logger.info(
            "version_transitioned",
            version_id=version.id,
            from_status=version.status.value,
            to_status=new_status.value
        )
        return VersionResponse(**result.data[0])

    def restore_active(self, version: VersionResponse) -> None:
        """
        Undo a freeze. Only used to compensate a failed publish.

        Not a regular transition: frozen is terminal otherwise.
        """
        logger.warning("restoring_active_version", version_id=version.id)
        (
            self.db.table(self.table)
            .update({
                "status": VersionStatus.ACTIVE.value,
                "frozen_at": None,
                "delete_after": None,
            })
            .eq("id", version.id)
            .eq("status", VersionStatus.FROZEN.value)
            .execute()
        )

    def delete_version(self, version_id: str) -> None:
        """Delete a version and its items (items first; no cascade assumed)."""
        logger.info("deleting_version", version_id=version_id)

        try:
            self.db.table(self.items_table).delete().eq("version_id", version_id).execute()
            self.db.table(self.table).delete().eq("id", version_id).execute()
        except Exception as e:
            logger.error("delete_version_failed", version_id=version_id, error=str(e))
            raise DatabaseError("delete", str(e))

    def ensure_active_version(self) -> Optional[VersionResponse]:
        """
        Promote the newest version when none is active.

        Needed when the active version was deleted outside a publish
        (retention job, manual cleanup). Returns the promoted version,
        or None if nothing changed.
        """
        versions = self.get_all()
        if not versions or any(v.status == VersionStatus.ACTIVE for v in versions):
            return None

        newest = versions[0]
        logger.warning("no_active_version_promoting_newest", version_id=newest.id)

        try:
            result = (
                self.db.table(self.table)
                .update({
                    "status": VersionStatus.ACTIVE.value,
                    "published_at": _now().isoformat(),
                    "frozen_at": None,
                    "delete_after": None,
                })
                .eq("id", newest.id)
                .execute()
            )
        except Exception as e:
            logger.error("ensure_active_version_failed", version_id=newest.id, error=str(e))
            raise DatabaseError("update", str(e))

        return VersionResponse(**result.data[0]) if result.data else None

    def prune_old_versions(self, keep: int) -> int:
        """
        Delete all but the newest `keep` versions.

        Best-effort: failures are logged per version.

        Returns:
            Number of versions deleted
        """
        try:
            versions = self.get_all()
        except DatabaseError as e:
            logger.warning("prune_versions_list_failed", error=e.message)
            return 0

        deleted = 0
        for version in versions[keep:]:
            if version.status == VersionStatus.ACTIVE:
                continue
            try:
                self.delete_version(version.id)
                deleted += 1
            except DatabaseError as e:
                logger.warning("prune_version_failed", version_id=version.id, error=e.message)

        if deleted:
            logger.info("old_versions_pruned", list_kind=self.config.kind.value, deleted=deleted)
        return deleted


# Singleton instances per list kind
_version_services: dict[ListKind, VersionService] = {}

def get_version_service(list_kind: ListKind = ListKind.PRODUCE) -> VersionService:
    """Get or create VersionService instance."""
    list_kind = ListKind(list_kind)
    if list_kind not in _version_services:
        _version_services[list_kind] = VersionService(list_kind)
    return _version_services[list_kind]
