"""
Naming rule schemas.
"""

from pydantic import Field
from typing import Optional
from enum import Enum

from models.base import BaseSchema, TimestampMixin


class RulePosition(str, Enum):
    """Where a keyword is moved to."""
    PREFIX = "PREFIX"
    SUFFIX = "SUFFIX"


class NamingRuleCreate(BaseSchema):
    """Create a keyword repositioning rule."""

    keyword: str = Field(..., min_length=1, max_length=50, examples=["Bio"])
    position: RulePosition = RulePosition.PREFIX
    is_active: bool = True


class NamingRuleUpdate(BaseSchema):
    """Only provided fields are updated."""

    keyword: Optional[str] = Field(None, min_length=1, max_length=50)
    position: Optional[RulePosition] = None
    is_active: Optional[bool] = None


class NamingRule(BaseSchema, TimestampMixin):
    """A stored rule. Rules apply in created_at order."""

    id: str = ""
    keyword: str
    position: RulePosition
    is_active: bool = True
