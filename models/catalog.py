"""
Schemas for list data that lives outside versions: custom products,
hidden items and categories.
"""

from pydantic import Field, field_validator
from typing import Optional
from datetime import datetime

from models.base import BaseSchema, TimestampMixin
from models.plu import ItemType


class CustomProductCreate(BaseSchema):
    """
    Create an operator-defined product.

    Required: plu, name
    """

    plu: str = Field(..., pattern=r"^\d{5}$", description="Five digit PLU")
    name: str = Field(..., min_length=1, max_length=200)
    item_type: ItemType = ItemType.PIECE
    price: Optional[float] = Field(None, ge=0)
    category_id: Optional[str] = None


class CustomProductResponse(BaseSchema):
    """A stored custom product."""

    id: str
    plu: str
    name: str
    item_type: ItemType = ItemType.PIECE
    price: Optional[float] = None
    category_id: Optional[str] = None
    created_by: Optional[str] = None
    created_at: datetime


class HideItemRequest(BaseSchema):
    """Suppress a PLU from display."""

    plu: str = Field(..., pattern=r"^\d{5}$")
    hidden_by: Optional[str] = None


class HiddenItemResponse(BaseSchema, TimestampMixin):
    """A hidden PLU."""

    id: str
    plu: str
    hidden_by: Optional[str] = None


class CategoryResponse(BaseSchema):
    """A named, ordered grouping."""

    id: str
    name: str
    order_index: int = 0


class CategoryRule(BaseSchema, TimestampMixin):
    """Assign a category to every item whose name contains the keyword."""

    id: str
    category_id: str
    keyword: str
    case_sensitive: bool = False


class ItemRenameRequest(BaseSchema):
    """Manual display name override."""

    display_name: str = Field(..., min_length=1, max_length=200)

    @field_validator("display_name")
    @classmethod
    def collapse_whitespace(cls, v: str) -> str:
        """Inner whitespace runs collapse to one space."""
        return " ".join(v.split())


class ItemCategoryRequest(BaseSchema):
    """Manual category assignment. None clears it."""

    category_id: Optional[str] = None
