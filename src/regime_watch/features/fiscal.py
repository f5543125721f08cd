"""
REGIME WATCH - Federal Interest Expense Ratio

Ratio = TTM interest expense / TTM receipts, from monthly
(not fiscal-year-to-date) Monthly Treasury Statement values.
"""

from __future__ import annotations

from datetime import date
from typing import Iterable, Optional

from regime_watch.features.trends import latest_point, sort_newest_first, ttm_sum
from regime_watch.types import InterestExpenseMetrics, TimePoint


def interest_expense_ratio(
    ttm_interest_expense: Optional[float],
    ttm_receipts: Optional[float],
) -> Optional[float]:
    """e.g. 0.20 = 20%. None on missing input or zero receipts."""
    if ttm_interest_expense is None or ttm_receipts is None or ttm_receipts == 0:
        return None
    return ttm_interest_expense / ttm_receipts


def interest_expense_metrics(
    interest_monthly: Iterable[TimePoint],
    receipts_monthly: Iterable[TimePoint],
    as_of: Optional[date] = None,
) -> InterestExpenseMetrics:
    """
    Compute TTM interest expense, TTM receipts and their ratio.

    Args:
        interest_monthly: Monthly gross interest outlays.
        receipts_monthly: Monthly net receipts.
        as_of: Window end (default: newest interest observation).

    Returns:
        InterestExpenseMetrics.
    """
    interest_monthly = list(interest_monthly)
    receipts_monthly = list(receipts_monthly)
    if as_of is None:
        newest = latest_point(interest_monthly)
        if newest is None:
            return InterestExpenseMetrics(None, None, None, None)
        as_of = newest.date

    ttm_interest = ttm_sum(interest_monthly, as_of)
    ttm_receipts = ttm_sum(receipts_monthly, as_of)
    return InterestExpenseMetrics(
        ttm_interest_expense=ttm_interest,
        ttm_receipts=ttm_receipts,
        ratio=interest_expense_ratio(ttm_interest, ttm_receipts),
        as_of=as_of,
    )


def interest_ratio_history(
    interest_monthly: Iterable[TimePoint],
    receipts_monthly: Iterable[TimePoint],
) -> list[TimePoint]:
    """Rolling TTM ratio at each monthly interest observation, newest first."""
    interest_monthly = sort_newest_first(interest_monthly)
    receipts_monthly = list(receipts_monthly)
    history = []
    for point in interest_monthly:
        metrics = interest_expense_metrics(interest_monthly, receipts_monthly, as_of=point.date)
        history.append(TimePoint(date=point.date, value=metrics.ratio))
    return history
