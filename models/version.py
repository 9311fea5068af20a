"""
Version schemas and the version state machine.
"""

from pydantic import Field
from typing import Optional
from enum import Enum
from datetime import datetime

from models.base import BaseSchema, TimestampMixin


class VersionStatus(str, Enum):
    """Lifecycle of a weekly snapshot."""
    DRAFT = "draft"
    ACTIVE = "active"
    FROZEN = "frozen"


# Allowed moves; deletion is handled outside the state machine
VERSION_TRANSITIONS: dict[VersionStatus, set[VersionStatus]] = {
    VersionStatus.DRAFT: {VersionStatus.ACTIVE},
    VersionStatus.ACTIVE: {VersionStatus.FROZEN},
    VersionStatus.FROZEN: set(),
}


def is_valid_version_transition(current: VersionStatus, new: VersionStatus) -> bool:
    """
    Check if a version status transition is valid.

    Rules:
    - draft -> active (publish)
    - active -> frozen (superseded)
    - frozen is terminal; the retention job deletes it
    """
    return new in VERSION_TRANSITIONS[VersionStatus(current)]


class VersionResponse(BaseSchema, TimestampMixin):
    """A stored version."""

    id: str
    week_number: int = Field(..., ge=1, le=53)
    year: int
    status: VersionStatus
    created_by: Optional[str] = None
    published_at: Optional[datetime] = None
    frozen_at: Optional[datetime] = None
    delete_after: Optional[datetime] = None


class PublishResult(BaseSchema):
    """Outcome of a successful publish."""

    version_id: str
    item_count: int
    notification_count: int
