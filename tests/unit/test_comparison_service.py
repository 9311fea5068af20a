"""
Unit tests for the comparison functions.

Run: pytest tests/unit/test_comparison_service.py -v
"""

import pytest

from services.comparison_service import (
    assign_item_types,
    compare_with_current_version,
    resolve_conflicts,
    unresolved_conflicts,
    validate_row,
)
from models.plu import (
    ConflictResolution,
    ItemType,
    ParsedFile,
    ParsedRow,
    PLUStatus,
)
from exceptions import AmbiguousFileTypesError, InvalidPLUError, ValidationError

from tests.factories import ParsedRowFactory, PLUItemFactory

NEW_VERSION = "version-new"


def _compare(rows, current=None, previous=None, first=False, item_type=ItemType.WEIGHT):
    return compare_with_current_version(
        incoming_rows=rows,
        item_type=item_type,
        current_items=current or [],
        previous_items=previous or [],
        new_version_id=NEW_VERSION,
        is_first_upload=first,
    )


class TestValidateRow:
    """Tests for validate_row()"""

    def test_valid_row_is_cleaned(self):
        """Should collapse whitespace in the name."""
        row = validate_row(ParsedRow(plu="10001", system_name="Banane   Chiquita"))

        assert row.plu == "10001"
        assert row.system_name == "Banane Chiquita"

    @pytest.mark.parametrize("plu", ["1234", "123456", "12a45", ""])
    def test_invalid_plu_raises(self, plu):
        """Should reject anything but five digits."""
        with pytest.raises(InvalidPLUError) as exc_info:
            validate_row(ParsedRow(plu=plu, system_name="Banane"))

        assert exc_info.value.code == "INVALID_PLU"

    def test_empty_name_raises(self):
        """Should reject whitespace-only names."""
        with pytest.raises(ValidationError) as exc_info:
            validate_row(ParsedRow(plu="10001", system_name="   "))

        assert exc_info.value.code == "EMPTY_NAME"


class TestCompareFirstUpload:
    """Tests for the first upload of a list."""

    def test_all_rows_unchanged(self):
        """Should classify every row as UNCHANGED with nothing removed."""
        # Arrange
        rows = [
            ParsedRowFactory.create("10001", "Banane"),
            ParsedRowFactory.create("10002", "Apfel"),
            ParsedRowFactory.create("10003", "Birne"),
        ]

        # Act
        result = _compare(rows, first=True)

        # Assert
        assert len(result.all_items) == 3
        assert all(i.status == PLUStatus.UNCHANGED for i in result.all_items)
        assert result.removed == []
        assert result.summary.unchanged == 3
        assert all(i.version_id == NEW_VERSION for i in result.all_items)


class TestCompareAgainstCurrent:
    """Tests for comparison against an active version."""

    def test_same_plu_same_name_keeps_customizations(self):
        """Should mark UNCHANGED and carry display name and category over."""
        # Arrange
        current = [PLUItemFactory.create(
            plu="10001",
            system_name="Banana",
            display_name="Bananen lose",
            category_id="cat-fruit",
            is_manually_renamed=True,
        )]

        # Act
        result = _compare([ParsedRowFactory.create("10001", "Banana")], current=current)

        # Assert
        item = result.unchanged[0]
        assert item.status == PLUStatus.UNCHANGED
        assert item.display_name == "Bananen lose"
        assert item.category_id == "cat-fruit"
        assert item.is_manually_renamed is True
        assert item.version_id == NEW_VERSION

    def test_name_match_is_case_insensitive(self):
        """Should treat case and spacing differences as the same name."""
        current = [PLUItemFactory.create(plu="10001", system_name="Äpfel Rot")]

        result = _compare([ParsedRowFactory.create("10001", "äpfel  rot")], current=current)

        assert result.summary.unchanged == 1
        assert result.conflicts == []

    def test_returning_product_under_new_plu_is_red(self):
        """Should detect a PLU change and point old_plu at the current code."""
        # Arrange
        current = [PLUItemFactory.create(plu="10001", system_name="Banana")]
        previous = [PLUItemFactory.create(plu="10050", system_name="Banana", version_id="version-frozen")]

        # Act
        result = _compare([ParsedRowFactory.create("10050", "Banana")], current=current, previous=previous)

        # Assert
        assert len(result.plu_changed) == 1
        item = result.plu_changed[0]
        assert item.status == PLUStatus.PLU_CHANGED_RED
        assert item.old_plu == "10001"
        assert result.removed == []

    def test_plu_change_from_frozen_version(self):
        """Should use frozen versions when the name left the current version."""
        previous = [PLUItemFactory.create(plu="10007", system_name="Mango", category_id="cat-exotic")]

        result = _compare([ParsedRowFactory.create("10070", "Mango")], previous=previous)

        item = result.plu_changed[0]
        assert item.old_plu == "10007"
        assert item.category_id == "cat-exotic"

    def test_unknown_row_is_new_product(self):
        """Should mark rows never seen before as NEW_PRODUCT_YELLOW."""
        current = [PLUItemFactory.create(plu="10001", system_name="Banane")]

        result = _compare(
            [ParsedRowFactory.create("10001", "Banane"), ParsedRowFactory.create("10099", "Drachenfrucht")],
            current=current,
        )

        assert [i.plu for i in result.new_products] == ["10099"]
        assert result.new_products[0].status == PLUStatus.NEW_PRODUCT_YELLOW

    def test_same_name_other_item_type_is_not_a_plu_change(self):
        """Should key names by item type."""
        current = [PLUItemFactory.create(plu="10001", system_name="Tomaten", item_type=ItemType.PIECE)]

        result = _compare([ParsedRowFactory.create("10002", "Tomaten")], current=current, item_type=ItemType.WEIGHT)

        assert result.summary.new_products == 1
        assert result.summary.plu_changed == 0

    def test_same_plu_other_name_is_conflict(self):
        """Should emit a conflict and no item for a renamed code."""
        current = [PLUItemFactory.create(plu="10001", system_name="Banane")]

        result = _compare([ParsedRowFactory.create("10001", "Kiwi")], current=current)

        assert result.all_items == []
        assert len(result.conflicts) == 1
        conflict = result.conflicts[0]
        assert conflict.incoming_name == "Kiwi"
        assert conflict.existing_name == "Banane"
        assert conflict.resolution is None

    def test_missing_items_are_removed(self):
        """Should report current items of this type that were not uploaded."""
        current = [
            PLUItemFactory.create(plu="10001", system_name="Banane"),
            PLUItemFactory.create(plu="10002", system_name="Apfel"),
            PLUItemFactory.create(plu="20001", system_name="Brötchen", item_type=ItemType.PIECE),
        ]

        result = _compare([ParsedRowFactory.create("10001", "Banane")], current=current)

        assert [i.plu for i in result.removed] == ["10002"]


class TestCompareRowHandling:
    """Tests for duplicates, invalid rows and completeness."""

    def test_duplicate_plu_first_wins(self):
        """Should keep the first row of a duplicated PLU and count the rest."""
        rows = [
            ParsedRowFactory.create("10001", "Banane"),
            ParsedRowFactory.create("10001", "Banane klein"),
        ]

        result = _compare(rows, first=True)

        assert len(result.all_items) == 1
        assert result.all_items[0].system_name == "Banane"
        assert result.summary.duplicates_skipped == 1

    def test_plus_taken_by_earlier_file_are_duplicates(self):
        """Should skip PLUs another file already claimed and record its own."""
        seen = {"10001"}
        current = [PLUItemFactory.create(plu="10001", system_name="Banane", item_type=ItemType.PIECE)]

        result = compare_with_current_version(
            incoming_rows=[
                ParsedRowFactory.create("10001", "Banane"),
                ParsedRowFactory.create("10002", "Apfel"),
            ],
            item_type=ItemType.PIECE,
            current_items=current,
            previous_items=[],
            new_version_id=NEW_VERSION,
            seen_plus=seen,
        )

        assert [i.plu for i in result.all_items] == ["10002"]
        assert result.summary.duplicates_skipped == 1
        assert result.removed == []
        assert seen == {"10001", "10002"}

    def test_invalid_rows_are_skipped(self):
        """Should count invalid rows without failing the comparison."""
        rows = [
            ParsedRowFactory.create("1000", "Zu kurz"),
            ParsedRowFactory.create("10002", " "),
            ParsedRowFactory.create("10003", "Birne"),
        ]

        result = _compare(rows, first=True)

        assert [i.plu for i in result.all_items] == ["10003"]
        assert result.summary.invalid_skipped == 2

    def test_every_valid_row_is_accounted_for(self):
        """Should place each distinct valid PLU in exactly one outcome."""
        # Arrange
        current = [
            PLUItemFactory.create(plu="10001", system_name="Banane"),
            PLUItemFactory.create(plu="10002", system_name="Apfel"),
        ]
        rows = [
            ParsedRowFactory.create("10001", "Banane"),
            ParsedRowFactory.create("10002", "Apfelsine"),
            ParsedRowFactory.create("10003", "Birne"),
            ParsedRowFactory.create("10004", "Apfel"),
        ]

        # Act
        result = _compare(rows, current=current)

        # Assert
        item_plus = [i.plu for i in result.all_items]
        conflict_plus = [c.plu for c in result.conflicts]
        assert sorted(item_plus + conflict_plus) == ["10001", "10002", "10003", "10004"]
        assert len(set(item_plus)) == len(item_plus)
        assert result.summary.total == len(result.all_items)


class TestResolveConflicts:
    """Tests for resolve_conflicts()"""

    @pytest.fixture
    def conflict_result(self):
        current = [PLUItemFactory.create(
            plu="10001",
            system_name="Banane",
            display_name="Bananen Premium",
            category_id="cat-fruit",
        )]
        return _compare([ParsedRowFactory.create("10001", "Banane Chiquita")], current=current)

    def _resolve(self, conflict_result, resolution):
        conflict = conflict_result.conflicts[0].model_copy(update={"resolution": resolution})
        return resolve_conflicts([conflict], NEW_VERSION)

    def test_keep_existing(self, conflict_result):
        """Should keep the stored name and customizations."""
        items = self._resolve(conflict_result, ConflictResolution.KEEP_EXISTING)

        assert items[0].system_name == "Banane"
        assert items[0].display_name == "Bananen Premium"
        assert items[0].category_id == "cat-fruit"
        assert items[0].status == PLUStatus.UNCHANGED

    def test_rename(self, conflict_result):
        """Should take the incoming name and keep the category."""
        items = self._resolve(conflict_result, ConflictResolution.RENAME)

        assert items[0].system_name == "Banane Chiquita"
        assert items[0].display_name is None
        assert items[0].category_id == "cat-fruit"

    def test_reassign(self, conflict_result):
        """Should treat the code as a new product without customizations."""
        items = self._resolve(conflict_result, ConflictResolution.REASSIGN)

        assert items[0].system_name == "Banane Chiquita"
        assert items[0].status == PLUStatus.NEW_PRODUCT_YELLOW
        assert items[0].category_id is None

    def test_skip_and_unresolved_produce_nothing(self, conflict_result):
        """Should write no item for skipped or open conflicts."""
        assert self._resolve(conflict_result, ConflictResolution.SKIP) == []
        assert resolve_conflicts(conflict_result.conflicts, NEW_VERSION) == []
        assert len(unresolved_conflicts(conflict_result.conflicts)) == 1


class TestAssignItemTypes:
    """Tests for assign_item_types()"""

    def _file(self, name, item_type):
        return ParsedFile(file_name=name, item_type=item_type)

    def test_distinct_types_unchanged(self):
        """Should keep files that already differ in type."""
        files = [self._file("stueck.xlsx", ItemType.PIECE), self._file("gewicht.xlsx", ItemType.WEIGHT)]

        assigned = assign_item_types(files)

        assert [f.item_type for f in assigned] == [ItemType.PIECE, ItemType.WEIGHT]

    def test_same_type_without_confirmation_raises(self):
        """Should not swap silently."""
        files = [self._file("a.xlsx", ItemType.WEIGHT), self._file("b.xlsx", ItemType.WEIGHT)]

        with pytest.raises(AmbiguousFileTypesError) as exc_info:
            assign_item_types(files)

        assert exc_info.value.details["proposed_type"] == "PIECE"
        assert exc_info.value.details["file_name"] == "b.xlsx"

    def test_same_type_with_confirmation_swaps_second(self):
        """Should switch the second file to the other type."""
        files = [self._file("a.xlsx", ItemType.WEIGHT), self._file("b.xlsx", ItemType.WEIGHT)]

        assigned = assign_item_types(files, confirm_swap=True)

        assert assigned[0].item_type == ItemType.WEIGHT
        assert assigned[1].item_type == ItemType.PIECE

    def test_single_type_list_allows_one_file(self):
        """Should reject two files for a list sold by the piece only."""
        files = [self._file("a.xlsx", ItemType.PIECE), self._file("b.xlsx", ItemType.PIECE)]

        with pytest.raises(ValidationError) as exc_info:
            assign_item_types(files, allowed_types=("PIECE",))

        assert exc_info.value.code == "TOO_MANY_FILES"

    def test_unsupported_type_raises(self):
        """Should reject a weight file for a piece-only list."""
        with pytest.raises(ValidationError) as exc_info:
            assign_item_types([self._file("a.xlsx", ItemType.WEIGHT)], allowed_types=("PIECE",))

        assert exc_info.value.code == "INVALID_ITEM_TYPE"
