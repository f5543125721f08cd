"""
REGIME WATCH - TIPS Breakeven Metrics

5Y and 10Y breakevens are observed; the 30Y is estimated as
10Y + a typical term premium. Slope = 30Y - 5Y.
"""

from __future__ import annotations

from typing import Iterable

from regime_watch.config import BreakevenConfig
from regime_watch.features.trends import latest_point
from regime_watch.types import BreakevenMetrics, TimePoint


def breakeven_metrics(
    five_year: Iterable[TimePoint],
    ten_year: Iterable[TimePoint],
    config: BreakevenConfig,
) -> BreakevenMetrics:
    """
    Compute breakeven levels, estimated 30Y and curve slope.

    Args:
        five_year: T5YIE series (percent).
        ten_year: T10YIE series (percent).
        config: Premium and slope warning level.

    Returns:
        BreakevenMetrics; None propagates from missing inputs.
    """
    p5 = latest_point(five_year)
    p10 = latest_point(ten_year)
    current_5y = p5.value if p5 is not None else None
    current_10y = p10.value if p10 is not None else None

    thirty = current_10y + config.thirty_year_premium if current_10y is not None else None
    slope = thirty - current_5y if thirty is not None and current_5y is not None else None

    dates = [p.date for p in (p5, p10) if p is not None]
    return BreakevenMetrics(
        five_year=current_5y,
        ten_year=current_10y,
        thirty_year_estimate=thirty,
        slope=slope,
        slope_warning=slope > config.slope_warning if slope is not None else None,
        as_of=max(dates) if dates else None,
    )
