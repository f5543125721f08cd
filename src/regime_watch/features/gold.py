"""
REGIME WATCH - Gold/Treasury Ratio Feature Engineering

Ratio = gold price per oz / long Treasury proxy price (TLT).
A rising ratio indicates substitution from Treasuries to gold.
"""

from __future__ import annotations

from typing import Iterable, Optional

from regime_watch.features.trends import (
    months_before,
    sort_newest_first,
    value_on_or_before,
)
from regime_watch.types import GoldTreasuryMetrics, TimePoint


def gold_treasury_ratio(gold_price: Optional[float], treasury_price: Optional[float]) -> Optional[float]:
    """None if either price is missing or the denominator is zero."""
    if gold_price is None or treasury_price is None or treasury_price == 0:
        return None
    return gold_price / treasury_price


def ratio_rate_of_change(current: Optional[float], previous: Optional[float]) -> Optional[float]:
    """(current - previous) / previous, e.g. 0.15 = 15% increase."""
    if current is None or previous is None or previous == 0:
        return None
    return (current - previous) / previous


def gold_treasury_ratio_series(
    gold: Iterable[TimePoint],
    treasury: Iterable[TimePoint],
) -> list[TimePoint]:
    """Ratio on dates where both prices were observed, newest first."""
    treasury_by_date = {p.date: p.value for p in treasury if p.value is not None}
    ratios = []
    for p in sort_newest_first(gold):
        ratio = gold_treasury_ratio(p.value, treasury_by_date.get(p.date))
        if ratio is not None:
            ratios.append(TimePoint(date=p.date, value=ratio))
    return ratios


def _roc_over_months(ratios: list[TimePoint], months: int) -> Optional[float]:
    if len(ratios) < 2:
        return None
    current = ratios[0]
    previous = value_on_or_before(ratios, months_before(current.date, months))
    if previous is None:
        return None
    return ratio_rate_of_change(current.value, previous.value)


def gold_treasury_metrics(
    gold: Iterable[TimePoint],
    treasury: Iterable[TimePoint],
) -> GoldTreasuryMetrics:
    """
    Compute the current Gold/Treasury ratio and its 6- and 12-month rate of change.

    Args:
        gold: Gold price series (USD/oz).
        treasury: Treasury proxy price series (TLT).

    Returns:
        GoldTreasuryMetrics; fields are None where data is insufficient.
    """
    gold = list(gold)
    treasury = list(treasury)
    ratios = gold_treasury_ratio_series(gold, treasury)
    if not ratios:
        return GoldTreasuryMetrics(
            current_ratio=None,
            gold_price=None,
            treasury_price=None,
            as_of=None,
            roc_6m=None,
            roc_12m=None,
        )

    current = ratios[0]
    gold_by_date = {p.date: p.value for p in gold}
    treasury_by_date = {p.date: p.value for p in treasury}
    return GoldTreasuryMetrics(
        current_ratio=current.value,
        gold_price=gold_by_date.get(current.date),
        treasury_price=treasury_by_date.get(current.date),
        as_of=current.date,
        roc_6m=_roc_over_months(ratios, 6),
        roc_12m=_roc_over_months(ratios, 12),
        history=ratios,
    )


def ratio_roc_history(ratios: Iterable[TimePoint], months: int = 12) -> list[TimePoint]:
    """Rolling N-month rate of change at each ratio observation, newest first."""
    ratios = sort_newest_first(ratios)
    history = []
    for i, point in enumerate(ratios):
        roc = _roc_over_months(ratios[i:], months)
        if roc is None:
            break
        history.append(TimePoint(date=point.date, value=roc))
    return history
