"""
Display list schemas: composer input and output.
"""

from pydantic import Field
from typing import Optional
from enum import Enum

from models.base import BaseSchema
from models.plu import ItemType, PLUItem, PLUStatus
from models.catalog import CategoryResponse, CustomProductResponse
from models.naming_rule import NamingRule


class SortMode(str, Enum):
    """Ordering of the composed list."""
    ALPHABETICAL = "ALPHABETICAL"
    BY_CATEGORY = "BY_CATEGORY"


class DisplayItem(BaseSchema):
    """One row as shown to viewers."""

    id: str
    plu: str
    system_name: str
    display_name: str
    item_type: ItemType
    status: PLUStatus
    old_plu: Optional[str] = None
    category_id: Optional[str] = None
    category_name: Optional[str] = None
    price: Optional[float] = None
    is_custom: bool = False
    is_manually_renamed: bool = False
    created_by: Optional[str] = None


class DisplayStats(BaseSchema):
    """Aggregate counts over the composed list."""

    total: int = 0
    hidden: int = 0
    new: int = 0
    changed: int = 0
    custom: int = 0


class DisplayList(BaseSchema):
    """Composer output."""

    items: list[DisplayItem] = Field(default_factory=list)
    stats: DisplayStats = Field(default_factory=DisplayStats)


class DisplayInput(BaseSchema):
    """Everything the composer needs; gathered once, reused on every render."""

    master_items: list[PLUItem] = Field(default_factory=list)
    custom_products: list[CustomProductResponse] = Field(default_factory=list)
    hidden_plus: set[str] = Field(default_factory=set)
    naming_rules: list[NamingRule] = Field(default_factory=list)
    categories: list[CategoryResponse] = Field(default_factory=list)
    sort_mode: SortMode = SortMode.ALPHABETICAL
    mark_yellow_weeks: int = Field(4, ge=0)
    version_week: int = Field(..., ge=1, le=53)
    version_year: int
    current_week: int = Field(..., ge=1, le=53)
    current_year: int
