"""
REGIME WATCH - Foreign Holdings Feature Engineering

Treasury holdings by country from TIC data ($ billions) and
central-bank gold purchases (tonnes per quarter, entered by hand).

Belgium is carried alongside mainland China as a custodial proxy:
Chinese holdings held through Euroclear show up under Belgium.
"""

from __future__ import annotations

import math
import re
from datetime import date
from typing import Iterable, Optional

from regime_watch.config import ConfigError
from regime_watch.features.trends import percent_change_over_months, sort_newest_first
from regime_watch.types import (
    CentralBankGold,
    CentralBankGoldEntry,
    CountryHoldings,
    ForeignHoldingsSummary,
    TimePoint,
)

JAPAN_NAMES = ("Japan",)
CHINA_NAMES = ("China, Mainland", "China")
BELGIUM_NAMES = ("Belgium",)
TOTAL_NAMES = ("Grand Total", "Total")

TIC_LAG_NOTE = "TIC data is released with approximately 6-8 week lag"
CHINA_NOTE = "Belgium holdings included as potential custodial proxy for Chinese holdings"

CENTRAL_BANK_GOLD_SOURCE = "World Gold Council"
CENTRAL_BANK_GOLD_NOTE = "Quarterly data - requires manual update"

_QUARTER = re.compile(r"^\d{4}-Q[1-4]$")


def country_series(by_country: dict[str, list[TimePoint]], names: Iterable[str]) -> list[TimePoint]:
    """Series for the first matching country name (case-insensitive), newest first."""
    lookup = {country.strip().lower(): series for country, series in by_country.items()}
    for name in names:
        series = sort_newest_first(lookup.get(name.lower(), []))
        if series:
            return series
    return []


def combine_by_date(*series: Iterable[TimePoint]) -> list[TimePoint]:
    """Sum of observed values per date, newest first. A holder missing on a date adds nothing."""
    totals: dict[date, float] = {}
    for points in series:
        for p in points:
            if p.value is None:
                continue
            totals[p.date] = totals.get(p.date, 0.0) + p.value
    return sort_newest_first(TimePoint(date=d, value=v) for d, v in totals.items())


def holdings_metrics(
    country: str,
    series: Iterable[TimePoint],
    components: dict | None = None,
    note: Optional[str] = None,
) -> CountryHoldings:
    """
    Current holdings and their 6- and 12-month percent change.

    Lookbacks are measured from the latest observation, not from today,
    since TIC data arrives weeks after the month it describes.
    """
    points = sort_newest_first(series)
    current = points[0] if points else None
    return CountryHoldings(
        country=country,
        current=current.value if current else None,
        as_of=current.date if current else None,
        six_month_change=percent_change_over_months(points, 6),
        twelve_month_change=percent_change_over_months(points, 12),
        components=components or {},
        note=note,
        history=points,
    )


def _value_on(series: list[TimePoint], d: Optional[date]) -> Optional[float]:
    for p in series:
        if p.date == d:
            return p.value
    return None


def total_holdings(by_country: dict[str, list[TimePoint]]) -> list[TimePoint]:
    """Reported grand total when the feed carries one, else the sum across countries."""
    reported = country_series(by_country, TOTAL_NAMES)
    if reported:
        return reported
    totals = {name.lower() for name in TOTAL_NAMES}
    return combine_by_date(
        *(series for country, series in by_country.items() if country.strip().lower() not in totals)
    )


def foreign_holdings_summary(by_country: dict[str, list[TimePoint]]) -> ForeignHoldingsSummary:
    """
    Total, Japanese and Chinese holdings of Treasury securities.

    China combines mainland holdings with Belgium on each date; the two
    parts are reported separately in components.
    """
    china_only = country_series(by_country, CHINA_NAMES)
    belgium = country_series(by_country, BELGIUM_NAMES)
    combined = combine_by_date(china_only, belgium)
    latest = combined[0].date if combined else None
    china = holdings_metrics(
        "China + Belgium",
        combined,
        components={
            "china_only": _value_on(china_only, latest),
            "belgium_proxy": _value_on(belgium, latest),
        },
        note=CHINA_NOTE,
    )
    return ForeignHoldingsSummary(
        total=holdings_metrics("All countries", total_holdings(by_country)),
        japan=holdings_metrics("Japan", country_series(by_country, JAPAN_NAMES)),
        china=china,
        data_lag_note=TIC_LAG_NOTE,
    )


# --- Central-bank gold purchases ---


def _finite(value, name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        raise ConfigError(f"{name} must be a finite number, got {value!r}")
    return value


def central_bank_gold_entry(
    period: str,
    total_tonnes: float,
    top_purchasers: dict | None = None,
) -> CentralBankGoldEntry:
    """Validated quarterly entry. Raises ConfigError on a malformed period or tonnage."""
    if not isinstance(period, str) or not _QUARTER.match(period.strip().upper()):
        raise ConfigError(f"period must look like '2025-Q3', got {period!r}")
    _finite(total_tonnes, "total_tonnes")
    if top_purchasers is not None and not isinstance(top_purchasers, dict):
        raise ConfigError(f"top_purchasers must map country to tonnes, got {top_purchasers!r}")
    purchasers = dict(top_purchasers or {})
    for country, tonnes in purchasers.items():
        _finite(tonnes, f"top_purchasers.{country}")
    return CentralBankGoldEntry(
        period=period.strip().upper(),
        total_tonnes=total_tonnes,
        top_purchasers=purchasers,
    )


def central_bank_gold_summary(entries: Iterable[CentralBankGoldEntry]) -> CentralBankGold:
    """
    Rolling 12-month purchases as the sum of the latest four quarters.

    Top purchasers are those of the most recent quarter. One entry per
    period; a later entry for the same period replaces the earlier one.
    """
    by_period = {entry.period: entry for entry in entries}
    quarters = sorted(by_period.values(), key=lambda e: e.period, reverse=True)
    return CentralBankGold(
        rolling_12m_tonnes=sum(q.total_tonnes for q in quarters[:4]) if quarters else None,
        top_purchasers=dict(quarters[0].top_purchasers) if quarters else {},
        quarters=quarters,
        source=CENTRAL_BANK_GOLD_SOURCE,
        note=CENTRAL_BANK_GOLD_NOTE,
    )
