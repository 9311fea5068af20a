"""
PLU item schemas used by the comparison and publish flow.
"""

from pydantic import Field
from typing import Optional
from enum import Enum

from models.base import BaseSchema, TimestampMixin


class ItemType(str, Enum):
    """How a product is sold."""
    PIECE = "PIECE"
    WEIGHT = "WEIGHT"


class PLUStatus(str, Enum):
    """Persisted item status. REMOVED exists only in comparison reports."""
    UNCHANGED = "UNCHANGED"
    NEW_PRODUCT_YELLOW = "NEW_PRODUCT_YELLOW"
    PLU_CHANGED_RED = "PLU_CHANGED_RED"


class ConflictResolution(str, Enum):
    """
    Operator decision for a code whose name changed.

    KEEP_EXISTING: keep the stored name, ignore the incoming one
    RENAME: same product under a new name; customizations survive
    REASSIGN: the code now belongs to an unrelated product
    SKIP: write no item for this code
    """
    KEEP_EXISTING = "KEEP_EXISTING"
    RENAME = "RENAME"
    REASSIGN = "REASSIGN"
    SKIP = "SKIP"


class ParsedRow(BaseSchema):
    """One row handed over by the spreadsheet parser."""

    plu: str = Field(..., description="Five digit PLU as text")
    system_name: str = Field(..., description="Name as delivered by the source system")
    category: Optional[str] = Field(None, description="Category label from the file, if any")


class ParsedFile(BaseSchema):
    """A parsed upload file with its detected item type."""

    file_name: str = ""
    item_type: ItemType
    rows: list[ParsedRow] = Field(default_factory=list)
    week_number: Optional[int] = Field(None, ge=1, le=53)


class PLUItem(BaseSchema, TimestampMixin):
    """One product row of a version."""

    id: str
    version_id: str
    plu: str
    system_name: str
    display_name: Optional[str] = None
    item_type: ItemType = ItemType.PIECE
    status: PLUStatus = PLUStatus.UNCHANGED
    old_plu: Optional[str] = None
    category_id: Optional[str] = None
    is_manually_renamed: bool = False
    price: Optional[float] = None

    def to_insert_row(self, version_id: str) -> dict:
        """Row as written by the publisher; the store assigns id and created_at."""
        return {
            "version_id": version_id,
            "plu": self.plu,
            "system_name": self.system_name,
            "display_name": self.display_name,
            "item_type": self.item_type.value,
            "status": self.status.value,
            "old_plu": self.old_plu,
            "category_id": self.category_id,
            "is_manually_renamed": self.is_manually_renamed,
            "price": self.price,
        }


class ConflictItem(BaseSchema):
    """A code that exists with a different name; needs an operator decision."""

    plu: str
    item_type: ItemType
    incoming_name: str
    existing_name: str
    existing_item: Optional[PLUItem] = None
    resolution: Optional[ConflictResolution] = None


class ComparisonSummary(BaseSchema):
    """Counts per outcome of one comparison run."""

    total: int = 0
    unchanged: int = 0
    plu_changed: int = 0
    new_products: int = 0
    removed: int = 0
    conflicts: int = 0
    duplicates_skipped: int = 0
    invalid_skipped: int = 0


class ComparisonResult(BaseSchema):
    """Comparator output for one item type."""

    item_type: ItemType
    summary: ComparisonSummary
    unchanged: list[PLUItem] = Field(default_factory=list)
    plu_changed: list[PLUItem] = Field(default_factory=list)
    new_products: list[PLUItem] = Field(default_factory=list)
    removed: list[PLUItem] = Field(default_factory=list)
    conflicts: list[ConflictItem] = Field(default_factory=list)
    all_items: list[PLUItem] = Field(default_factory=list)


# ===================
# UPLOAD REQUESTS
# ===================

class UploadCompareRequest(BaseSchema):
    """Compare parsed files against the active version."""

    files: list[ParsedFile] = Field(..., min_length=1)
    week_number: int = Field(..., ge=1, le=53)
    year: int = Field(..., ge=2000, le=2100)
    confirm_swap: bool = Field(
        False,
        description="Treat the second file as the other item type when both were detected alike"
    )


class UploadPreview(BaseSchema):
    """Everything the operator reviews before publishing."""

    new_version_id: str
    week_number: int
    year: int
    is_first_upload: bool
    comparisons: list[ComparisonResult] = Field(default_factory=list)
    conflicts: list[ConflictItem] = Field(default_factory=list)
    version_exists: bool = False

    @property
    def all_items(self) -> list[PLUItem]:
        return [item for comparison in self.comparisons for item in comparison.all_items]

    @property
    def summary(self) -> ComparisonSummary:
        total = ComparisonSummary()
        for comparison in self.comparisons:
            for field_name in ComparisonSummary.model_fields:
                setattr(
                    total,
                    field_name,
                    getattr(total, field_name) + getattr(comparison.summary, field_name)
                )
        return total


class UploadPublishRequest(BaseSchema):
    """Publish a reviewed preview with the operator's conflict decisions."""

    preview: UploadPreview
    created_by: str
    replace_existing: bool = False
