"""
Custom exceptions module.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    NotFoundError,
    ValidationError,
    ConflictError,
    DatabaseError,

    # Upload / comparison
    InvalidPLUError,
    AmbiguousFileTypesError,
    UnresolvedConflictsError,

    # Versions / publish
    VersionNotFoundError,
    VersionExistsError,
    InvalidStatusTransitionError,
    PublishError,
    NotificationError,

    # Catalog / settings
    CustomProductNotFoundError,
    CustomProductPLUExistsError,
    ItemNotFoundError,
    NamingRuleNotFoundError,
    SettingsUpdateTimeoutError,
)

__all__ = [
    # Base
    "AppError",
    "NotFoundError",
    "ValidationError",
    "ConflictError",
    "DatabaseError",

    # Upload / comparison
    "InvalidPLUError",
    "AmbiguousFileTypesError",
    "UnresolvedConflictsError",

    # Versions / publish
    "VersionNotFoundError",
    "VersionExistsError",
    "InvalidStatusTransitionError",
    "PublishError",
    "NotificationError",

    # Catalog / settings
    "CustomProductNotFoundError",
    "CustomProductPLUExistsError",
    "ItemNotFoundError",
    "NamingRuleNotFoundError",
    "SettingsUpdateTimeoutError",
]
