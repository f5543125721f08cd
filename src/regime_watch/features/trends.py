"""
REGIME WATCH - Trend & Change Calculators

Calendar-month windowed changes and trailing-twelve-month sums.

Lookbacks locate the most recent observation dated on or before
(current date - N months). They never step back a fixed number of
points, so gaps and irregular observation dates are tolerated.
Points whose value is None are treated as absent observations.
"""

from __future__ import annotations

from datetime import date
from typing import Iterable, Optional

import pandas as pd

from regime_watch.types import TimePoint


def months_before(d: date, months: int) -> date:
    """Calendar month arithmetic. Month ends clamp (Aug 31 - 6 months = Feb 28/29)."""
    return (pd.Timestamp(d) - pd.DateOffset(months=months)).date()


def sort_newest_first(series: Iterable[TimePoint]) -> list[TimePoint]:
    """Observed points only, newest first."""
    return sorted((p for p in series if p.value is not None), key=lambda p: p.date, reverse=True)


def latest_point(series: Iterable[TimePoint]) -> Optional[TimePoint]:
    points = sort_newest_first(series)
    return points[0] if points else None


def latest_value(series: Iterable[TimePoint]) -> Optional[float]:
    point = latest_point(series)
    return point.value if point is not None else None


def value_on_or_before(series: Iterable[TimePoint], target: date) -> Optional[TimePoint]:
    """First observed point scanning newest -> oldest with date <= target."""
    for point in sort_newest_first(series):
        if point.date <= target:
            return point
    return None


def _lookback_pair(series: Iterable[TimePoint], months: int) -> Optional[tuple[TimePoint, TimePoint]]:
    points = sort_newest_first(series)
    if len(points) < 2:
        return None
    current = points[0]
    previous = value_on_or_before(points, months_before(current.date, months))
    if previous is None:
        return None
    return current, previous


def change_over_months(series: Iterable[TimePoint], months: int) -> Optional[float]:
    """current.value - value N calendar months earlier. None if the series is too short."""
    pair = _lookback_pair(series, months)
    if pair is None:
        return None
    current, previous = pair
    return current.value - previous.value


def six_month_change(series: Iterable[TimePoint]) -> Optional[float]:
    return change_over_months(series, 6)


def twelve_month_change(series: Iterable[TimePoint]) -> Optional[float]:
    return change_over_months(series, 12)


def percent_change(current: Optional[float], previous: Optional[float]) -> Optional[float]:
    """Fractional change (0.15 = 15%). None on missing input or zero base."""
    if current is None or previous is None or previous == 0:
        return None
    return (current - previous) / previous


def percent_change_over_months(series: Iterable[TimePoint], months: int) -> Optional[float]:
    """Change over N calendar months in percent (15.0 = 15%)."""
    pair = _lookback_pair(series, months)
    if pair is None:
        return None
    change = percent_change(pair[0].value, pair[1].value)
    return change * 100 if change is not None else None


def ttm_sum(monthly: Iterable[TimePoint], as_of: date) -> Optional[float]:
    """
    Sum of monthly observations dated in (as_of - 12 months, as_of].

    Expects monthly values, not fiscal-year-to-date cumulative ones.
    Returns None when no observation falls in the window.
    """
    start = months_before(as_of, 12)
    values = [p.value for p in monthly if p.value is not None and start < p.date <= as_of]
    if not values:
        return None
    return sum(values)
