"""
Supabase client access.

One cached client serves both lists. PostgREST gives us no transactions
across tables, so multi-table writers (the publisher) undo their own
steps when a later one fails.
"""

from functools import lru_cache
from typing import Optional

import structlog
from supabase import create_client, Client

from config.settings import settings
from config.lists import LIST_CONFIGS

logger = structlog.get_logger(__name__)


class SupabaseConnectionError(Exception):
    """The Supabase client could not be created."""


@lru_cache()
def get_supabase_client() -> Client:
    """
    Cached client using the anon key.

    Raises:
        SupabaseConnectionError: If the client cannot be created
    """
    # never log the full project URL
    logger.info("connecting_to_supabase", url=settings.supabase_url[:30] + "...")
    try:
        client = create_client(settings.supabase_url, settings.supabase_key)
    except Exception as e:
        logger.error("supabase_connection_failed", error=str(e), error_type=type(e).__name__)
        raise SupabaseConnectionError(f"Failed to connect to Supabase: {e}") from e

    logger.info("supabase_connected")
    return client


def get_admin_client() -> Optional[Client]:
    """
    Client with the service role key, or None when no key is configured.

    Profiles are row-level protected, so notification fan-out reads them
    through this client.
    """
    if not settings.supabase_service_key:
        logger.warning("admin_client_not_configured")
        return None

    try:
        return create_client(settings.supabase_url, settings.supabase_service_key)
    except Exception as e:
        logger.error("admin_client_failed", error=str(e))
        return None


def check_connection() -> dict:
    """
    Count versions in every list's versions table.

    Returns:
        dict: {"status": "healthy", "<list>_versions": n, ...} or
        {"status": "unhealthy", "error": ...}
    """
    try:
        client = get_supabase_client()
        status = {"status": "healthy"}
        for kind, config in LIST_CONFIGS.items():
            result = client.table(config.versions_table).select("id", count="exact").execute()
            status[f"{kind.value}_versions"] = result.count
        return status

    except Exception as e:
        logger.warning("database_health_check_failed", error=str(e))
        return {"status": "unhealthy", "error": str(e)}
