"""
Configuration module.

Exports:
    settings / get_settings: Environment settings
    get_supabase_client / get_admin_client: Supabase clients
    check_connection: Health check
    ListKind / get_list_config: Per-list storage configuration
"""

from config.settings import settings, get_settings, Settings
from config.lists import (
    ListKind,
    ListConfig,
    LIST_CONFIGS,
    PROFILES_TABLE,
    PLU_PATTERN,
    get_list_config,
)
from config.database import (
    get_supabase_client,
    get_admin_client,
    check_connection,
    SupabaseConnectionError,
)

__all__ = [
    # Settings
    "settings",
    "get_settings",
    "Settings",

    # Lists
    "ListKind",
    "ListConfig",
    "LIST_CONFIGS",
    "PROFILES_TABLE",
    "PLU_PATTERN",
    "get_list_config",

    # Database
    "get_supabase_client",
    "get_admin_client",
    "check_connection",
    "SupabaseConnectionError",
]
