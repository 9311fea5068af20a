"""
Comparison of an uploaded list against the active version.

Pure functions; the upload service loads the data and calls them.

Decision tree per incoming row:
1. First upload -> UNCHANGED (nothing to compare against)
2. PLU in current version, same name -> UNCHANGED, customizations carried over
3. PLU in current version, other name -> conflict, operator decides
4. Name in current version under another PLU -> PLU_CHANGED_RED
5. Name in a frozen version under another PLU -> PLU_CHANGED_RED
6. Otherwise -> NEW_PRODUCT_YELLOW
"""

import re
from typing import Iterable, Optional
from uuid import uuid4
import structlog

from config import PLU_PATTERN
from models.plu import (
    ComparisonResult,
    ComparisonSummary,
    ConflictItem,
    ConflictResolution,
    ItemType,
    ParsedFile,
    ParsedRow,
    PLUItem,
    PLUStatus,
)
from exceptions import AmbiguousFileTypesError, InvalidPLUError, ValidationError
from utils.text_utils import clean_name, name_key

logger = structlog.get_logger(__name__)

_PLU_RE = re.compile(PLU_PATTERN)

# At most one file per item type
MAX_UPLOAD_FILES = 2


def validate_row(row: ParsedRow) -> ParsedRow:
    """
    Check the row contract.

    Raises:
        InvalidPLUError: PLU is not five digits
        ValidationError: Name is empty
    """
    plu = (row.plu or "").strip()
    if not _PLU_RE.match(plu):
        raise InvalidPLUError(plu)

    name = clean_name(row.system_name)
    if not name:
        raise ValidationError("Product name is empty", code="EMPTY_NAME", details={"plu": plu})

    return ParsedRow(plu=plu, system_name=name, category=row.category)


def _lookup_key(name: str, item_type: ItemType) -> tuple[str, str]:
    return name_key(name), ItemType(item_type).value


def _new_item(row: ParsedRow, item_type: ItemType, version_id: str) -> PLUItem:
    return PLUItem(
        id=str(uuid4()),
        version_id=version_id,
        plu=row.plu,
        system_name=row.system_name,
        item_type=item_type,
        status=PLUStatus.UNCHANGED,
    )


def compare_with_current_version(
    incoming_rows: Iterable[ParsedRow],
    item_type: ItemType,
    current_items: list[PLUItem],
    previous_items: list[PLUItem],
    new_version_id: str,
    is_first_upload: bool = False,
    seen_plus: Optional[set[str]] = None,
) -> ComparisonResult:
    """
    Classify incoming rows of one item type against stored versions.

    Args:
        incoming_rows: Rows from the parser (duplicates and bad rows are counted, not fatal)
        item_type: Item type of this file
        current_items: Items of the active version (all types)
        previous_items: Items of frozen versions
        new_version_id: Version id stamped on the produced items
        is_first_upload: No active version exists; everything becomes baseline
        seen_plus: PLUs already taken by earlier files of the same upload.
            Rows reusing one count as duplicates; this file's PLUs are added.

    Returns:
        ComparisonResult with per-status lists, conflicts and summary
    """
    item_type = ItemType(item_type)

    current_by_plu: dict[str, PLUItem] = {}
    current_by_name: dict[tuple[str, str], PLUItem] = {}
    for item in current_items:
        current_by_plu.setdefault(item.plu, item)
        current_by_name.setdefault(_lookup_key(item.system_name, item.item_type), item)

    # Only names that left the current version count as "seen before"
    previous_by_name: dict[tuple[str, str], PLUItem] = {}
    for item in previous_items:
        key = _lookup_key(item.system_name, item.item_type)
        if key not in current_by_name:
            previous_by_name.setdefault(key, item)

    unchanged: list[PLUItem] = []
    plu_changed: list[PLUItem] = []
    new_products: list[PLUItem] = []
    conflicts: list[ConflictItem] = []
    all_items: list[PLUItem] = []

    # Shared across the files of one upload so the first file wins
    processed_plus: set[str] = seen_plus if seen_plus is not None else set()
    renumbered_from: set[str] = set()
    duplicates_skipped = 0
    invalid_skipped = 0

    for raw_row in incoming_rows:
        try:
            row = validate_row(raw_row)
        except ValidationError as e:
            invalid_skipped += 1
            logger.debug("row_skipped", code=e.code, details=e.details)
            continue

        if row.plu in processed_plus:
            duplicates_skipped += 1
            continue
        processed_plus.add(row.plu)

        item = _new_item(row, item_type, new_version_id)

        if is_first_upload:
            unchanged.append(item)
            all_items.append(item)
            continue

        existing = current_by_plu.get(row.plu)
        if existing is not None:
            if name_key(existing.system_name) == name_key(row.system_name):
                item.display_name = existing.display_name
                item.is_manually_renamed = existing.is_manually_renamed
                item.category_id = existing.category_id
                item.price = existing.price
                unchanged.append(item)
                all_items.append(item)
            else:
                conflicts.append(ConflictItem(
                    plu=row.plu,
                    item_type=item_type,
                    incoming_name=row.system_name,
                    existing_name=existing.system_name,
                    existing_item=existing,
                ))
            continue

        key = _lookup_key(row.system_name, item_type)
        renamed_from = current_by_name.get(key) or previous_by_name.get(key)
        if renamed_from is not None and renamed_from.plu != row.plu:
            item.status = PLUStatus.PLU_CHANGED_RED
            item.old_plu = renamed_from.plu
            item.category_id = renamed_from.category_id
            renumbered_from.add(renamed_from.plu)
            plu_changed.append(item)
            all_items.append(item)
            continue

        item.status = PLUStatus.NEW_PRODUCT_YELLOW
        new_products.append(item)
        all_items.append(item)

    removed: list[PLUItem] = []
    if not is_first_upload:
        removed = [
            item for item in current_items
            if item.item_type == item_type
            and item.plu not in processed_plus
            and item.plu not in renumbered_from
        ]

    summary = ComparisonSummary(
        total=len(all_items),
        unchanged=len(unchanged),
        plu_changed=len(plu_changed),
        new_products=len(new_products),
        removed=len(removed),
        conflicts=len(conflicts),
        duplicates_skipped=duplicates_skipped,
        invalid_skipped=invalid_skipped,
    )

    logger.info(
        "comparison_complete",
        item_type=item_type.value,
        is_first_upload=is_first_upload,
        **summary.model_dump()
    )

    return ComparisonResult(
        item_type=item_type,
        summary=summary,
        unchanged=unchanged,
        plu_changed=plu_changed,
        new_products=new_products,
        removed=removed,
        conflicts=conflicts,
        all_items=all_items,
    )


def resolve_conflicts(conflicts: Iterable[ConflictItem], new_version_id: str) -> list[PLUItem]:
    """
    Turn operator decisions into items for the new version.

    Conflicts without a resolution, and those resolved with SKIP,
    produce no item.
    """
    resolved: list[PLUItem] = []

    for conflict in conflicts:
        resolution = conflict.resolution
        if resolution is None or resolution == ConflictResolution.SKIP:
            continue

        existing = conflict.existing_item
        item = PLUItem(
            id=str(uuid4()),
            version_id=new_version_id,
            plu=conflict.plu,
            system_name=conflict.existing_name,
            item_type=conflict.item_type,
            status=PLUStatus.UNCHANGED,
        )

        if resolution == ConflictResolution.KEEP_EXISTING:
            if existing is not None:
                item.display_name = existing.display_name
                item.is_manually_renamed = existing.is_manually_renamed
                item.category_id = existing.category_id
                item.price = existing.price

        elif resolution == ConflictResolution.RENAME:
            item.system_name = conflict.incoming_name
            if existing is not None:
                # The manual display name described the old name; keep only if operator set it
                item.display_name = existing.display_name if existing.is_manually_renamed else None
                item.is_manually_renamed = existing.is_manually_renamed
                item.category_id = existing.category_id
                item.price = existing.price

        elif resolution == ConflictResolution.REASSIGN:
            item.system_name = conflict.incoming_name
            item.status = PLUStatus.NEW_PRODUCT_YELLOW

        resolved.append(item)

    logger.info("conflicts_resolved", resolved=len(resolved))
    return resolved


def unresolved_conflicts(conflicts: Iterable[ConflictItem]) -> list[ConflictItem]:
    """Conflicts still waiting for an operator decision."""
    return [c for c in conflicts if c.resolution is None]


def assign_item_types(
    files: list[ParsedFile],
    allowed_types: Iterable[str] = ("PIECE", "WEIGHT"),
    confirm_swap: bool = False,
) -> list[ParsedFile]:
    """
    Decide which uploaded file is which item type.

    With exactly two files detected as the same type, the second one is
    switched to the other type only when the operator confirmed it.

    Raises:
        ValidationError: Too many files, or a type the list does not sell
        AmbiguousFileTypesError: Both files share a type and no confirmation given
    """
    allowed = [ItemType(t) for t in allowed_types]
    max_files = min(MAX_UPLOAD_FILES, len(allowed))

    if not files:
        raise ValidationError("At least one file is required", code="NO_FILES")
    if len(files) > max_files:
        raise ValidationError(
            f"At most {max_files} file(s) per upload",
            code="TOO_MANY_FILES",
            details={"count": len(files), "max": max_files}
        )

    assigned = list(files)
    if len(assigned) == 2 and assigned[0].item_type == assigned[1].item_type:
        other = next(t for t in allowed if t != assigned[0].item_type)
        if not confirm_swap:
            raise AmbiguousFileTypesError(
                assigned[0].item_type.value,
                other.value,
                assigned[1].file_name
            )
        logger.info(
            "file_type_swapped",
            file_name=assigned[1].file_name,
            from_type=assigned[1].item_type.value,
            to_type=other.value
        )
        assigned[1] = assigned[1].model_copy(update={"item_type": other})

    for parsed in assigned:
        if parsed.item_type not in allowed:
            raise ValidationError(
                f"Item type {parsed.item_type.value} is not used by this list",
                code="INVALID_ITEM_TYPE",
                details={"file_name": parsed.file_name}
            )

    return assigned
