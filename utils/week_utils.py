"""
Calendar week helpers.

Versions are identified by ISO week and ISO year. Week distances across
year boundaries count real weeks, so week 52/2025 to week 1/2026 is 1.
"""

from datetime import date, datetime, timezone
from typing import Iterable, Optional, Union

# Weeks before/after the current one offered when uploading
WEEK_RANGE = 3

# Years before/after the current one offered when uploading
YEAR_RANGE = 1

MAX_WEEK = 53


def iso_week_and_year(value: Union[date, datetime]) -> tuple[int, int]:
    """Return (week, year) per ISO 8601."""
    iso = value.isocalendar()
    return iso[1], iso[0]


def current_week_and_year(today: Optional[date] = None) -> tuple[int, int]:
    """ISO week and year for today (UTC)."""
    return iso_week_and_year(today or datetime.now(timezone.utc).date())


def week_monday(week: int, year: int) -> date:
    """Monday of an ISO week. Raises ValueError for a week the year lacks."""
    return date.fromisocalendar(year, week, 1)


def weeks_between(
    from_week: int,
    from_year: int,
    to_week: int,
    to_year: int
) -> int:
    """
    Whole weeks from one ISO week to another.

    Negative when the target lies before the start. A week 53 in a year
    that has only 52 falls back to 52 weeks per year arithmetic.
    """
    try:
        return (week_monday(to_week, to_year) - week_monday(from_week, from_year)).days // 7
    except ValueError:
        return (to_year - from_year) * 52 + (to_week - from_week)


def clamp_week(week: int, current_week: int) -> int:
    """Clamp a week into the upload range (current +-3, within 1..53)."""
    low = max(1, current_week - WEEK_RANGE)
    high = min(MAX_WEEK, current_week + WEEK_RANGE)
    return max(low, min(high, week))


def week_options_for_upload(current_week: Optional[int] = None) -> list[int]:
    """Weeks selectable for an upload: current week +-3, clamped to 1..53."""
    if current_week is None:
        current_week, _ = current_week_and_year()
    low = max(1, current_week - WEEK_RANGE)
    high = min(MAX_WEEK, current_week + WEEK_RANGE)
    return list(range(low, high + 1))


def year_options_for_upload(current_year: Optional[int] = None) -> list[int]:
    """Years selectable for an upload: current year +-1."""
    if current_year is None:
        _, current_year = current_week_and_year()
    return [current_year - YEAR_RANGE, current_year, current_year + YEAR_RANGE]


def _existing_weeks(versions: Optional[Iterable], year: int) -> set[int]:
    weeks = set()
    for version in versions or []:
        v_year = version["year"] if isinstance(version, dict) else version.year
        v_week = version["week_number"] if isinstance(version, dict) else version.week_number
        if v_year == year:
            weeks.add(v_week)
    return weeks


def next_free_week(current_week: int, year: int, versions: Optional[Iterable]) -> int:
    """First week from current_week on with no version in that year."""
    taken = _existing_weeks(versions, year)
    for week in range(current_week, MAX_WEEK + 1):
        if week not in taken:
            return week
    return current_week


def version_exists_for_week(week: int, year: int, versions: Optional[Iterable]) -> bool:
    """True if a version already exists for (week, year)."""
    return week in _existing_weeks(versions, year)
