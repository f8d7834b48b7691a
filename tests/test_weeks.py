"""
Tests for ISO week indexing, including year-boundary weeks.
"""
from datetime import date, timedelta

import pytest

from sadhana.core.errors import InvalidInputError
from sadhana.services.weeks import (
    iso_year,
    parse_week_key,
    week_date_range,
    week_key,
    week_number,
    weeks_in_year,
)


class TestWeekNumber:
    def test_monday_january_first(self):
        assert week_number(date(2024, 1, 1)) == 1
        assert iso_year(date(2024, 1, 1)) == 2024

    def test_early_january_in_previous_iso_year(self):
        # 2021-01-01 is a Friday → week 53 of 2020
        assert week_number(date(2021, 1, 1)) == 53
        assert iso_year(date(2021, 1, 1)) == 2020

    def test_late_december_in_next_iso_year(self):
        # 2024-12-30 is a Monday → week 1 of 2025
        assert week_number(date(2024, 12, 30)) == 1
        assert iso_year(date(2024, 12, 30)) == 2025

    def test_week_key_uses_iso_year(self):
        assert week_key(date(2021, 1, 1)) == "2020-W53"
        assert week_key(date(2024, 3, 5)) == "2024-W10"

    def test_weeks_in_year(self):
        assert weeks_in_year(2020) == 53
        assert weeks_in_year(2021) == 52


class TestWeekDateRange:
    def test_first_week_starts_in_december(self):
        assert week_date_range(1, 2025) == (date(2024, 12, 30), date(2025, 1, 5))

    def test_week_53(self):
        assert week_date_range(53, 2020) == (date(2020, 12, 28), date(2021, 1, 3))

    def test_round_trip_across_year_boundaries(self):
        day = date(2019, 12, 20)
        while day <= date(2021, 1, 10):
            start, end = week_date_range(week_number(day), iso_year(day))
            assert start <= day <= end
            assert start.weekday() == 0
            assert end - start == timedelta(days=6)
            day += timedelta(days=1)

    @pytest.mark.parametrize("week, year", [(0, 2024), (53, 2021), (54, 2020), (-1, 2024)])
    def test_out_of_range_week_rejected(self, week, year):
        with pytest.raises(InvalidInputError):
            week_date_range(week, year)

    def test_non_integer_rejected(self):
        with pytest.raises(InvalidInputError):
            week_date_range("10", 2024)


class TestParseWeekKey:
    def test_inverse_of_week_key(self):
        assert parse_week_key(week_key(date(2021, 1, 1))) == (2020, 53)

    @pytest.mark.parametrize("bad", ["2024-10", "W10", "", "2024-Wxx"])
    def test_malformed(self, bad):
        with pytest.raises(InvalidInputError):
            parse_week_key(bad)
