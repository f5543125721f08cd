"""Tests for calendar-month change calculators."""

from datetime import date

import pytest

from regime_watch.features.trends import (
    latest_value,
    months_before,
    percent_change,
    percent_change_over_months,
    six_month_change,
    sort_newest_first,
    ttm_sum,
    twelve_month_change,
    value_on_or_before,
)
from regime_watch.types import TimePoint


def tp(y, m, d, v):
    return TimePoint(date=date(y, m, d), value=v)


class TestMonthsBefore:
    def test_plain(self):
        assert months_before(date(2026, 1, 15), 6) == date(2025, 7, 15)

    def test_month_end_clamps(self):
        assert months_before(date(2025, 8, 31), 6) == date(2025, 2, 28)
        assert months_before(date(2024, 8, 31), 6) == date(2024, 2, 29)


class TestSorting:
    def test_newest_first_drops_none(self):
        series = [tp(2025, 1, 1, 1.0), tp(2025, 3, 1, None), tp(2025, 2, 1, 2.0)]
        result = sort_newest_first(series)
        assert [p.date for p in result] == [date(2025, 2, 1), date(2025, 1, 1)]

    def test_latest_value(self):
        assert latest_value([tp(2025, 1, 1, 1.0), tp(2025, 2, 1, 2.0)]) == 2.0
        assert latest_value([]) is None

    def test_value_on_or_before(self):
        series = [tp(2025, 1, 10, 1.0), tp(2025, 2, 10, 2.0)]
        assert value_on_or_before(series, date(2025, 2, 9)).value == 1.0
        assert value_on_or_before(series, date(2025, 1, 1)) is None


class TestChangeOverMonths:
    def test_six_month_change_calendar_lookback(self):
        series = [
            tp(2026, 1, 15, 5.0),
            tp(2025, 7, 20, 99.0),  # after the target date, skipped
            tp(2025, 7, 10, 3.0),
            tp(2025, 1, 1, 1.0),
        ]
        assert six_month_change(series) == pytest.approx(2.0)

    def test_irregular_gaps_tolerated(self):
        series = [tp(2026, 1, 15, 10.0), tp(2024, 12, 1, 4.0)]
        assert twelve_month_change(series) == pytest.approx(6.0)

    def test_too_short_is_none(self):
        assert six_month_change([tp(2026, 1, 15, 5.0), tp(2025, 12, 1, 4.0)]) is None
        assert six_month_change([tp(2026, 1, 15, 5.0)]) is None
        assert six_month_change([]) is None

    def test_percent_change_over_months(self):
        series = [tp(2026, 1, 15, 115.0), tp(2025, 1, 15, 100.0)]
        assert percent_change_over_months(series, 12) == pytest.approx(15.0)


class TestPercentChange:
    def test_zero_base_is_none(self):
        assert percent_change(1.0, 0.0) is None

    def test_none_propagates(self):
        assert percent_change(None, 1.0) is None
        assert percent_change(1.0, None) is None


class TestTtmSum:
    def test_open_closed_window(self):
        monthly = [
            tp(2025, 12, 31, 10.0),
            tp(2025, 1, 31, 5.0),
            tp(2024, 12, 31, 1000.0),  # exactly 12 months back, excluded
            tp(2026, 1, 31, 1000.0),  # after as_of, excluded
        ]
        assert ttm_sum(monthly, date(2025, 12, 31)) == pytest.approx(15.0)

    def test_empty_window_is_none(self):
        assert ttm_sum([tp(2020, 1, 31, 5.0)], date(2025, 12, 31)) is None

    def test_none_values_skipped(self):
        monthly = [tp(2025, 12, 31, None), tp(2025, 11, 30, 3.0)]
        assert ttm_sum(monthly, date(2025, 12, 31)) == pytest.approx(3.0)
