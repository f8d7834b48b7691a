"""
ISO-8601 week indexing.

Weeks start on Monday; week 1 is the week containing the year's first
Thursday. Late-December days can belong to week 1 of the next ISO year
and early-January days to the last week of the previous one, so every
lookup resolves from the date itself, never from date.year.
"""
from __future__ import annotations

from datetime import date, timedelta

from sadhana.core.errors import InvalidInputError


def week_number(day: date) -> int:
    return day.isocalendar()[1]


def iso_year(day: date) -> int:
    """ISO week-numbering year of `day` (may differ from day.year)."""
    return day.isocalendar()[0]


def weeks_in_year(year: int) -> int:
    # Dec 28 is always in the last ISO week of its year.
    return date(year, 12, 28).isocalendar()[1]


def week_key(day: date) -> str:
    """Sortable label such as "2024-W09"."""
    return f"{iso_year(day):04d}-W{week_number(day):02d}"


def week_date_range(week: int, year: int) -> tuple[date, date]:
    """Inclusive (Monday, Sunday) range of ISO week `week` in ISO year `year`."""
    if isinstance(week, bool) or not isinstance(week, int):
        raise InvalidInputError("week", week, "must be an integer")
    if isinstance(year, bool) or not isinstance(year, int) or not 1 <= year <= 9999:
        raise InvalidInputError("year", year, "must be an integer between 1 and 9999")
    last = weeks_in_year(year)
    if not 1 <= week <= last:
        raise InvalidInputError("week", week, f"must be between 1 and {last} for {year}")
    monday = date.fromisocalendar(year, week, 1)
    return monday, monday + timedelta(days=6)


def parse_week_key(key: str) -> tuple[int, int]:
    """Inverse of week_key(): "2024-W09" → (2024, 9)."""
    try:
        year_part, week_part = key.split("-W")
        return int(year_part), int(week_part)
    except (AttributeError, ValueError):
        raise InvalidInputError("week_key", key, 'must look like "YYYY-Www"') from None
