"""
Publishing a new version.

The store has no multi-table transactions, so publishing is a sequence
of steps with compensating actions:

1. Freeze the active version (nothing to freeze on first publish)
2. Insert the new version as draft
3. Insert items in batches         -> on failure: delete draft, restore step 1
4. Activate the draft              -> on failure: delete draft, restore step 1
5. Notify users (best-effort)      -> failures logged, never raised
6. Prune old versions (best-effort)

With replace_existing, the version already stored for the week is only
deleted once the new one is active. If it was the active version it is
frozen in step 1 like any other, so a failed publish restores it.

A consumer never sees an active version that is not fully populated:
the draft only becomes active after its last batch is written.
"""

from typing import Optional
import structlog

from config import (
    get_supabase_client,
    get_admin_client,
    settings,
    ListKind,
    get_list_config,
    PROFILES_TABLE,
)
from models.plu import PLUItem
from models.version import PublishResult, VersionResponse, VersionStatus
from services.version_service import VersionService, get_version_service
from exceptions import (
    AppError,
    NotificationError,
    PublishError,
    ValidationError,
    VersionExistsError,
)

logger = structlog.get_logger(__name__)


class PublishService:
    """
    Publish orchestration for one list kind.

    Exactly one publish per list is expected to run at a time.
    """

    def __init__(
        self,
        list_kind: ListKind = ListKind.PRODUCE,
        version_service: Optional[VersionService] = None
    ):
        self.db = get_supabase_client()
        self.config = get_list_config(list_kind)
        self.versions = version_service or get_version_service(list_kind)
        self.batch_size = settings.publish_batch_size

    # ===================
    # PUBLIC API
    # ===================

    def publish_version(
        self,
        week_number: int,
        year: int,
        items: list[PLUItem],
        created_by: str,
        replace_existing: bool = False
    ) -> PublishResult:
        """
        Publish items as the new active version.

        Args:
            week_number: Calendar week of the new version (1-53)
            year: Year of the new version
            items: Items to write (comparison output plus resolved conflicts)
            created_by: User id of the publisher (gets no notification)
            replace_existing: Replace an existing version for the same week

        Returns:
            PublishResult with version id, item count and notification count

        Raises:
            ValidationError: Preconditions not met (nothing was written)
            VersionExistsError: Week already published and replace_existing is False
            PublishError: A persistence step failed; prior state restored
        """
        log = logger.bind(list_kind=self.config.kind.value, week_number=week_number, year=year)
        self._check_preconditions(week_number, year, items, created_by)

        replaced = self.versions.get_by_week(week_number, year)
        if replaced is not None:
            if not replace_existing:
                raise VersionExistsError(week_number, year)
            log.warning("replacing_existing_version", version_id=replaced.id, status=replaced.status.value)

        log.info("publish_started", item_count=len(items))

        # 1. Freeze
        frozen = self._freeze_active()

        # 2. Draft
        try:
            draft = self.versions.create_draft(week_number, year, created_by)
        except AppError as e:
            self._restore_frozen(frozen)
            raise PublishError("create_draft", e.message) from e

        # 3. Items
        try:
            self._insert_items(draft.id, items)
        except PublishError:
            self._rollback(draft.id, frozen)
            raise

        # 4. Activate
        try:
            self.versions.transition(draft, VersionStatus.ACTIVE)
        except AppError as e:
            self._rollback(draft.id, frozen)
            raise PublishError("activate", e.message, details={"version_id": draft.id}) from e

        log.info("version_published", version_id=draft.id, item_count=len(items))

        if replaced is not None:
            self._delete_replaced(replaced.id)

        # 5. Notifications
        notification_count = self._notify_users(draft.id, created_by)

        # 6. Retention
        self.versions.prune_old_versions(settings.version_retention_count)

        return PublishResult(
            version_id=draft.id,
            item_count=len(items),
            notification_count=notification_count,
        )

    # ===================
    # STEPS
    # ===================

    def _check_preconditions(
        self,
        week_number: int,
        year: int,
        items: list[PLUItem],
        created_by: str
    ) -> None:
        if not 1 <= week_number <= 53:
            raise ValidationError("Week must be between 1 and 53", code="INVALID_WEEK",
                                  details={"week_number": week_number})
        if not 2000 <= year <= 2100:
            raise ValidationError("Year out of range", code="INVALID_YEAR", details={"year": year})
        if not created_by:
            raise ValidationError("Publisher is required", code="MISSING_PUBLISHER")
        if not items:
            raise ValidationError("Nothing to publish", code="EMPTY_VERSION")

        seen: set[str] = set()
        duplicates: set[str] = set()
        for item in items:
            if item.plu in seen:
                duplicates.add(item.plu)
            seen.add(item.plu)
        if duplicates:
            raise ValidationError(
                "Duplicate PLUs in publish set",
                code="DUPLICATE_PLU",
                details={"plus": sorted(duplicates)}
            )

    def _freeze_active(self) -> Optional[VersionResponse]:
        """
        Freeze the active version.

        No active version is normal on first publish. A failed write is
        not: publishing on would leave two active versions.
        """
        active = self.versions.get_active()
        if active is None:
            logger.info("no_active_version_to_freeze", list_kind=self.config.kind.value)
            return None

        try:
            return self.versions.transition(active, VersionStatus.FROZEN)
        except AppError as e:
            logger.error("freeze_active_version_failed", version_id=active.id, error=e.message)
            raise PublishError("freeze", e.message, details={"version_id": active.id}) from e

    def _insert_items(self, version_id: str, items: list[PLUItem]) -> None:
        rows = [item.to_insert_row(version_id) for item in items]

        for start in range(0, len(rows), self.batch_size):
            batch = rows[start:start + self.batch_size]
            batch_number = start // self.batch_size + 1
            try:
                self.db.table(self.config.items_table).insert(batch).execute()
            except Exception as e:
                logger.error(
                    "insert_items_batch_failed",
                    version_id=version_id,
                    batch=batch_number,
                    error=str(e)
                )
                raise PublishError(
                    "insert_items",
                    str(e),
                    details={"version_id": version_id, "batch": batch_number}
                ) from e

            logger.debug("items_batch_inserted", version_id=version_id, batch=batch_number, rows=len(batch))

    def _rollback(self, draft_id: str, frozen: Optional[VersionResponse]) -> None:
        """Delete the draft and its items, then re-activate the frozen version."""
        logger.warning("publish_rollback", draft_id=draft_id)
        try:
            self.versions.delete_version(draft_id)
        except AppError as e:
            # Draft stays unreachable: it never became active
            logger.error("publish_rollback_delete_failed", draft_id=draft_id, error=e.message)
        self._restore_frozen(frozen)

    def _restore_frozen(self, frozen: Optional[VersionResponse]) -> None:
        if frozen is None:
            return
        try:
            self.versions.restore_active(frozen)
        except Exception as e:
            logger.error("publish_rollback_restore_failed", version_id=frozen.id, error=str(e))

    def _delete_replaced(self, version_id: str) -> None:
        """Best-effort: a leftover copy of the week is never active and retention removes it."""
        try:
            self.versions.delete_version(version_id)
        except AppError as e:
            logger.warning("replaced_version_delete_failed", version_id=version_id, error=e.message)

    def _notify_users(self, version_id: str, created_by: str) -> int:
        """
        One unread notification per user except the publisher.

        Best-effort: returns how many rows were written.
        """
        if not self.config.notifications_enabled:
            return 0

        # Profiles are row-level protected; read them with the service role when configured
        profiles_db = get_admin_client() or self.db

        written = 0
        try:
            result = (
                profiles_db.table(PROFILES_TABLE)
                .select("id")
                .neq("id", created_by)
                .execute()
            )
            rows = [
                {"user_id": profile["id"], "version_id": version_id, "is_read": False}
                for profile in result.data
            ]

            for start in range(0, len(rows), self.batch_size):
                batch = rows[start:start + self.batch_size]
                try:
                    self.db.table(self.config.notifications_table).insert(batch).execute()
                    written += len(batch)
                except Exception as e:
                    error = NotificationError(str(e), details={"batch": start // self.batch_size + 1})
                    logger.warning("notification_batch_failed", version_id=version_id, **error.details,
                                   error=error.message)

        except Exception as e:
            logger.warning("notifications_failed", version_id=version_id, error=str(e))

        logger.info("notifications_created", version_id=version_id, count=written)
        return written


# Singleton instances per list kind
_publish_services: dict[ListKind, PublishService] = {}

def get_publish_service(list_kind: ListKind = ListKind.PRODUCE) -> PublishService:
    """Get or create PublishService instance."""
    list_kind = ListKind(list_kind)
    if list_kind not in _publish_services:
        _publish_services[list_kind] = PublishService(list_kind)
    return _publish_services[list_kind]
