"""
Unit tests for calendar week helpers.

Run: pytest tests/unit/test_week_utils.py -v
"""

import pytest
from datetime import date

from utils.week_utils import (
    clamp_week,
    current_week_and_year,
    iso_week_and_year,
    next_free_week,
    version_exists_for_week,
    week_options_for_upload,
    weeks_between,
    year_options_for_upload,
)


class TestIsoWeeks:
    """Tests for ISO week conversion."""

    def test_iso_week_of_new_year(self):
        """Should use the ISO year, not the calendar year."""
        assert iso_week_and_year(date(2026, 12, 31)) == (53, 2026)
        assert iso_week_and_year(date(2027, 1, 1)) == (53, 2026)

    def test_current_week_for_given_day(self):
        assert current_week_and_year(date(2026, 3, 2)) == (10, 2026)


class TestWeeksBetween:
    """Tests for weeks_between()"""

    def test_same_year(self):
        assert weeks_between(10, 2026, 14, 2026) == 4

    def test_across_year_boundary(self):
        """Should count real weeks from week 52 to week 1."""
        assert weeks_between(52, 2025, 1, 2026) == 1

    def test_target_before_start_is_negative(self):
        assert weeks_between(10, 2026, 8, 2026) == -2

    def test_week_53_in_short_year_falls_back(self):
        """Should not fail for a week the year doesn't have."""
        assert weeks_between(53, 2025, 1, 2026) == 0


class TestUploadOptions:
    """Tests for week and year selection."""

    def test_week_options_around_current(self):
        assert week_options_for_upload(10) == [7, 8, 9, 10, 11, 12, 13]

    def test_week_options_clamped_at_start(self):
        assert week_options_for_upload(2) == [1, 2, 3, 4, 5]

    def test_week_options_clamped_at_end(self):
        assert week_options_for_upload(52) == [49, 50, 51, 52, 53]

    def test_year_options(self):
        assert year_options_for_upload(2026) == [2025, 2026, 2027]

    @pytest.mark.parametrize("week,expected", [(1, 7), (10, 10), (20, 13)])
    def test_clamp_week(self, week, expected):
        assert clamp_week(week, current_week=10) == expected


class TestExistingVersions:
    """Tests for version lookups by week."""

    def test_next_free_week_skips_taken(self):
        versions = [
            {"week_number": 10, "year": 2026},
            {"week_number": 11, "year": 2026},
            {"week_number": 12, "year": 2025},
        ]

        assert next_free_week(10, 2026, versions) == 12

    def test_version_exists_for_week(self):
        versions = [{"week_number": 10, "year": 2026}]

        assert version_exists_for_week(10, 2026, versions) is True
        assert version_exists_for_week(10, 2025, versions) is False
        assert version_exists_for_week(10, 2026, None) is False
