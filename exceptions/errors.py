"""
Error types raised by services and rendered by the API.

Every error carries a stable code, a human-readable message and an HTTP
status so routes can return it unchanged.
"""

from typing import Optional, Any
from datetime import datetime, timezone


class AppError(Exception):
    """
    Root of the service's error tree.

    routes.errors.handle_error and the app-level handler both render it
    with to_dict() under its status_code.
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> dict:
        """{"error": {code, message, details, timestamp}}"""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "timestamp": self.timestamp
            }
        }


class NotFoundError(AppError):
    """Resource not found (404)."""

    def __init__(
        self,
        resource: str,
        identifier: str,
        code: Optional[str] = None
    ):
        super().__init__(
            code=code or f"{resource.upper()}_NOT_FOUND",
            message=f"{resource} not found",
            status_code=404,
            details={"id": identifier}
        )


class ValidationError(AppError):
    """Validation failed (422)."""

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=422,
            details=details
        )


class ConflictError(AppError):
    """Conflict with existing resource or state (409)."""

    def __init__(
        self,
        message: str,
        code: str = "CONFLICT",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=409,
            details=details
        )


class DatabaseError(AppError):
    """Database operation failed (500)."""

    def __init__(
        self,
        operation: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="DATABASE_ERROR",
            message=f"Database {operation} failed: {message}",
            status_code=500,
            details={"operation": operation, **(details or {})}
        )


# ===================
# UPLOAD / COMPARISON
# ===================

class InvalidPLUError(ValidationError):
    """PLU is not a five digit code."""

    def __init__(self, plu: str):
        super().__init__(
            code="INVALID_PLU",
            message="PLU must be exactly five digits",
            details={"plu": plu}
        )


class AmbiguousFileTypesError(ValidationError):
    """Two uploaded files resolved to the same item type."""

    def __init__(self, item_type: str, proposed_type: str, file_name: Optional[str] = None):
        super().__init__(
            code="AMBIGUOUS_FILE_TYPES",
            message=(
                f"Both files were detected as {item_type}. "
                f"Confirm treating the second file as {proposed_type}."
            ),
            details={
                "detected_type": item_type,
                "proposed_type": proposed_type,
                "file_name": file_name
            }
        )


class UnresolvedConflictsError(ConflictError):
    """Publish attempted while comparison conflicts are still open."""

    def __init__(self, plus: list[str]):
        super().__init__(
            code="UNRESOLVED_CONFLICTS",
            message=f"{len(plus)} conflict(s) must be resolved before publishing",
            details={"plus": plus}
        )


# ===================
# VERSIONS / PUBLISH
# ===================

class VersionNotFoundError(NotFoundError):
    """Version not found."""

    def __init__(self, version_id: str):
        super().__init__(
            resource="Version",
            identifier=version_id,
            code="VERSION_NOT_FOUND"
        )


class VersionExistsError(ConflictError):
    """A version for this calendar week already exists."""

    def __init__(self, week_number: int, year: int):
        super().__init__(
            code="VERSION_EXISTS",
            message=f"A version for week {week_number}/{year} already exists",
            details={"week_number": week_number, "year": year}
        )


class InvalidStatusTransitionError(ValidationError):
    """Invalid version status transition."""

    def __init__(self, current_status: str, new_status: str):
        super().__init__(
            code="INVALID_STATUS_TRANSITION",
            message=f"Cannot transition from {current_status} to {new_status}",
            details={
                "current_status": current_status,
                "new_status": new_status,
                "reason": "Versions move draft -> active -> frozen only"
            }
        )


class PublishError(AppError):
    """A publish step failed; the draft version was rolled back (500)."""

    def __init__(
        self,
        step: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="PUBLISH_FAILED",
            message=f"Publish failed at {step}: {message}",
            status_code=500,
            details={"step": step, **(details or {})}
        )


class NotificationError(AppError):
    """Notification fan-out failed. Logged by the publisher, never raised to callers."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(
            code="NOTIFICATION_FAILED",
            message=message,
            status_code=500,
            details=details
        )


# ===================
# CATALOG / SETTINGS
# ===================

class CustomProductNotFoundError(NotFoundError):
    """Custom product not found."""

    def __init__(self, product_id: str):
        super().__init__(
            resource="CustomProduct",
            identifier=product_id,
            code="CUSTOM_PRODUCT_NOT_FOUND"
        )


class CustomProductPLUExistsError(ConflictError):
    """PLU already used by a master item or another custom product."""

    def __init__(self, plu: str, source: str):
        super().__init__(
            code="CUSTOM_PRODUCT_PLU_EXISTS",
            message=f"PLU {plu} already exists in the {source} list",
            details={"plu": plu, "source": source}
        )


class ItemNotFoundError(NotFoundError):
    """Master item not found."""

    def __init__(self, item_id: str):
        super().__init__(
            resource="Item",
            identifier=item_id,
            code="ITEM_NOT_FOUND"
        )


class NamingRuleNotFoundError(NotFoundError):
    """Naming rule not found."""

    def __init__(self, rule_id: str):
        super().__init__(
            resource="NamingRule",
            identifier=rule_id,
            code="NAMING_RULE_NOT_FOUND"
        )


class SettingsUpdateTimeoutError(AppError):
    """Write to the shared layout settings row did not finish in time (504)."""

    def __init__(self, timeout_seconds: float):
        super().__init__(
            code="SETTINGS_UPDATE_TIMEOUT",
            message="Saving took too long. Reload the page and try again.",
            status_code=504,
            details={"timeout_seconds": timeout_seconds}
        )
