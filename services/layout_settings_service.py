"""
Layout settings service.

Each list kind has a single shared settings row. Writes to it run under
a client-side timeout so a hanging request surfaces as a "reload and
retry" error instead of blocking the caller indefinitely.
"""

from concurrent.futures import ThreadPoolExecutor, TimeoutError as FuturesTimeoutError
from datetime import datetime, timezone
from typing import Optional
import structlog

from config import get_supabase_client, settings, ListKind, get_list_config
from models.layout_settings import LayoutSettingsResponse, LayoutSettingsUpdate
from exceptions import DatabaseError, SettingsUpdateTimeoutError

logger = structlog.get_logger(__name__)

# Shared worker pool for guarded writes, created on first use
_executor: Optional[ThreadPoolExecutor] = None


def _get_executor() -> ThreadPoolExecutor:
    global _executor
    if _executor is None:
        _executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="layout-settings")
    return _executor


def shutdown_executor() -> None:
    """Stop accepting writes; in-flight writes are left to finish."""
    global _executor
    if _executor is not None:
        _executor.shutdown(wait=False)
        _executor = None


class LayoutSettingsService:
    """
    Read and update the layout settings row of one list kind.

    A missing row reads as defaults and is created on first update.
    """

    def __init__(
        self,
        list_kind: ListKind = ListKind.PRODUCE,
        timeout_seconds: Optional[float] = None
    ):
        self.db = get_supabase_client()
        self.config = get_list_config(list_kind)
        self.table = self.config.layout_settings_table
        self.timeout_seconds = timeout_seconds or settings.settings_update_timeout_seconds

    def get(self) -> LayoutSettingsResponse:
        """Current settings, or defaults if the row doesn't exist yet."""
        row = self._get_row()
        if row is None:
            return LayoutSettingsResponse(mark_yellow_weeks=settings.default_mark_yellow_weeks)
        return LayoutSettingsResponse(**row)

    def update(self, data: LayoutSettingsUpdate) -> LayoutSettingsResponse:
        """
        Update provided fields.

        Raises:
            SettingsUpdateTimeoutError: Write did not finish within the timeout
            DatabaseError: Write failed
        """
        update_data = data.model_dump(exclude_none=True, mode="json")
        logger.info("updating_layout_settings", list_kind=self.config.kind.value, fields=list(update_data))

        future = _get_executor().submit(self._write, update_data)
        try:
            return future.result(timeout=self.timeout_seconds)
        except FuturesTimeoutError:
            future.cancel()
            logger.error(
                "layout_settings_update_timeout",
                list_kind=self.config.kind.value,
                timeout_seconds=self.timeout_seconds
            )
            raise SettingsUpdateTimeoutError(self.timeout_seconds)

    def _get_row(self) -> Optional[dict]:
        try:
            result = self.db.table(self.table).select("*").limit(1).execute()
        except Exception as e:
            logger.error("get_layout_settings_failed", error=str(e))
            raise DatabaseError("select", str(e))
        return result.data[0] if result.data else None

    def _write(self, update_data: dict) -> LayoutSettingsResponse:
        update_data = {**update_data, "updated_at": datetime.now(timezone.utc).isoformat()}
        row = self._get_row()

        try:
            if row is None:
                result = self.db.table(self.table).insert(update_data).execute()
            else:
                result = (
                    self.db.table(self.table)
                    .update(update_data)
                    .eq("id", row["id"])
                    .execute()
                )
        except Exception as e:
            logger.error("update_layout_settings_failed", error=str(e))
            raise DatabaseError("update", str(e))

        if not result.data:
            raise DatabaseError("update", "settings row not returned")

        logger.info("layout_settings_updated", list_kind=self.config.kind.value)
        return LayoutSettingsResponse(**result.data[0])


# Singleton instances per list kind
_layout_settings_services: dict[ListKind, LayoutSettingsService] = {}

def get_layout_settings_service(list_kind: ListKind = ListKind.PRODUCE) -> LayoutSettingsService:
    """Get or create LayoutSettingsService instance."""
    list_kind = ListKind(list_kind)
    if list_kind not in _layout_settings_services:
        _layout_settings_services[list_kind] = LayoutSettingsService(list_kind)
    return _layout_settings_services[list_kind]
