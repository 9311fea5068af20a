"""
Shared pydantic bases.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class BaseSchema(BaseModel):
    """
    Base for request and response schemas.

    Strings are stripped, assignments are re-validated (conflict
    resolutions are set on parsed previews) and rows from Supabase load
    via from_attributes.
    """
    model_config = ConfigDict(
        from_attributes=True,
        str_strip_whitespace=True,
        validate_assignment=True
    )


class TimestampMixin(BaseModel):
    """created_at as stored by the database; absent on unsaved rows."""
    created_at: Optional[datetime] = None
