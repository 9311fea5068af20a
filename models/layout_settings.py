"""
Layout settings schemas (one shared row per list kind).
"""

from pydantic import Field
from typing import Optional
from datetime import datetime

from models.base import BaseSchema
from models.display import SortMode


class LayoutSettingsResponse(BaseSchema):
    """The stored settings row."""

    id: Optional[str] = None
    sort_mode: SortMode = SortMode.ALPHABETICAL
    mark_yellow_weeks: int = Field(4, ge=0, le=53)
    features_custom_products: bool = True
    features_hidden_items: bool = True
    features_categories: bool = True
    features_naming_rules: bool = True
    updated_at: Optional[datetime] = None
    updated_by: Optional[str] = None


class LayoutSettingsUpdate(BaseSchema):
    """Only provided fields are updated."""

    sort_mode: Optional[SortMode] = None
    mark_yellow_weeks: Optional[int] = Field(None, ge=0, le=53)
    features_custom_products: Optional[bool] = None
    features_hidden_items: Optional[bool] = None
    features_categories: Optional[bool] = None
    features_naming_rules: Optional[bool] = None
    updated_by: Optional[str] = None
