"""
Business logic services.

Each service handles one area for one list kind (produce or bakery).
"""

from services.version_service import VersionService, get_version_service
from services.publish_service import PublishService, get_publish_service
from services.upload_service import UploadService, get_upload_service
from services.naming_rule_service import (
    NamingRuleService,
    get_naming_rule_service,
    apply_naming_rules,
)
from services.catalog_service import CatalogService, get_catalog_service, apply_category_rules
from services.layout_settings_service import LayoutSettingsService, get_layout_settings_service
from services.display_service import DisplayService, get_display_service, build_display_list
from services.comparison_service import (
    compare_with_current_version,
    resolve_conflicts,
    assign_item_types,
)

__all__ = [
    "VersionService",
    "get_version_service",
    "PublishService",
    "get_publish_service",
    "UploadService",
    "get_upload_service",
    "NamingRuleService",
    "get_naming_rule_service",
    "apply_naming_rules",
    "CatalogService",
    "get_catalog_service",
    "apply_category_rules",
    "LayoutSettingsService",
    "get_layout_settings_service",
    "DisplayService",
    "get_display_service",
    "build_display_list",
    "compare_with_current_version",
    "resolve_conflicts",
    "assign_item_types",
]
