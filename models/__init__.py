"""
Pydantic models for validation and serialization.
"""

from models.base import BaseSchema, TimestampMixin
from models.plu import (
    ItemType,
    PLUStatus,
    ConflictResolution,
    ParsedRow,
    ParsedFile,
    PLUItem,
    ConflictItem,
    ComparisonSummary,
    ComparisonResult,
    UploadCompareRequest,
    UploadPreview,
    UploadPublishRequest,
)
from models.version import (
    VersionStatus,
    VERSION_TRANSITIONS,
    is_valid_version_transition,
    VersionResponse,
    PublishResult,
)
from models.catalog import (
    CustomProductCreate,
    CustomProductResponse,
    HideItemRequest,
    HiddenItemResponse,
    CategoryResponse,
    CategoryRule,
    ItemRenameRequest,
    ItemCategoryRequest,
)
from models.naming_rule import (
    RulePosition,
    NamingRuleCreate,
    NamingRuleUpdate,
    NamingRule,
)
from models.display import (
    SortMode,
    DisplayItem,
    DisplayStats,
    DisplayList,
    DisplayInput,
)
from models.layout_settings import (
    LayoutSettingsResponse,
    LayoutSettingsUpdate,
)

__all__ = [
    # Base
    "BaseSchema",
    "TimestampMixin",

    # PLU
    "ItemType",
    "PLUStatus",
    "ConflictResolution",
    "ParsedRow",
    "ParsedFile",
    "PLUItem",
    "ConflictItem",
    "ComparisonSummary",
    "ComparisonResult",
    "UploadCompareRequest",
    "UploadPreview",
    "UploadPublishRequest",

    # Versions
    "VersionStatus",
    "VERSION_TRANSITIONS",
    "is_valid_version_transition",
    "VersionResponse",
    "PublishResult",

    # Catalog
    "CustomProductCreate",
    "CustomProductResponse",
    "HideItemRequest",
    "HiddenItemResponse",
    "CategoryResponse",
    "CategoryRule",
    "ItemRenameRequest",
    "ItemCategoryRequest",

    # Naming rules
    "RulePosition",
    "NamingRuleCreate",
    "NamingRuleUpdate",
    "NamingRule",

    # Display
    "SortMode",
    "DisplayItem",
    "DisplayStats",
    "DisplayList",
    "DisplayInput",

    # Layout settings
    "LayoutSettingsResponse",
    "LayoutSettingsUpdate",
]
