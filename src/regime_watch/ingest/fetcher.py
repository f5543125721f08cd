"""
REGIME WATCH - Async Data Fetcher

Only module in regime_watch that contains network code.
Sources: FRED, Treasury Fiscal Data (auctions, Monthly Treasury
Statement, TIC foreign holdings) and a daily quote chart endpoint for
gold and TLT.
"""

from __future__ import annotations

import asyncio
import logging
import os
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Optional

import aiohttp

from regime_watch.config import MonitorConfig
from regime_watch.types import AuctionResult, RawSeriesBundle, TimePoint

logger = logging.getLogger(__name__)

# RawSeriesBundle field -> FRED series id
FRED_SERIES = {
    "us10y": "DGS10",
    "jgb10y": "IRLTLT01JPM156N",
    "fed_funds": "DFF",
    "vix": "VIXCLS",
    "hy_spread": "BAMLH0A0HYM2",
    "sofr": "SOFR",
    "tbill_3m": "DTB3",
    "dollar_index": "DTWEXBGS",
    "fed_balance_sheet": "WALCL",
    "breakeven_5y": "T5YIE",
    "breakeven_10y": "T10YIE",
    "cpi": "CPIAUCSL",
    "foreign_holdings": "FDHBFIN",
}

# RawSeriesBundle field -> quote symbol
QUOTE_SYMBOLS = {
    "gold_price": "GC=F",
    "tlt_price": "TLT",
}

AUCTIONS_PATH = "/v1/accounting/od/auctions_query"
MTS_INTEREST_PATH = "/v1/accounting/mts/mts_table_5"
MTS_RECEIPTS_PATH = "/v1/accounting/mts/mts_table_4"
TIC_HOLDINGS_PATH = "/v1/accounting/od/title_iii"


class MacroSeriesFetcher:
    """
    Async fetcher for all REGIME WATCH data sources.

    Every source is fetched concurrently. A failed source yields an
    empty series and a logged warning, never an exception.
    """

    def __init__(
        self,
        config: MonitorConfig | None = None,
        api_key: str | None = None,
        when_issued_yields: dict[str, float] | None = None,
    ) -> None:
        self.config = config or MonitorConfig()
        self.api_key = api_key or os.environ.get("FRED_API_KEY")
        # CUSIP -> when-issued yield (percent); no free feed publishes these
        self.when_issued_yields = dict(when_issued_yields or {})

    async def fetch(self, as_of_date: date | None = None) -> RawSeriesBundle:
        """
        Fetch all raw series for a given date.

        Args:
            as_of_date: Target date (default: today).

        Returns:
            RawSeriesBundle with every series newest first; failed sources empty.
        """
        as_of_date = as_of_date or date.today()
        ingest = self.config.ingest
        start = as_of_date - timedelta(days=ingest.lookback_calendar_days)

        fred_fields = list(FRED_SERIES)
        quote_fields = list(QUOTE_SYMBOLS)
        fields = fred_fields + quote_fields + [
            "auctions",
            "interest_expense_monthly",
            "receipts_monthly",
            "tic_holdings",
        ]

        timeout = aiohttp.ClientTimeout(total=ingest.request_timeout_seconds)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            results = await asyncio.gather(
                *(self._fetch_fred(session, FRED_SERIES[f], start, as_of_date) for f in fred_fields),
                *(self._fetch_quotes(session, QUOTE_SYMBOLS[f], start, as_of_date) for f in quote_fields),
                self._fetch_auctions(session, start, as_of_date),
                self._fetch_mts(session, MTS_INTEREST_PATH, "current_month_gross", ingest.mts_interest_line, start, as_of_date),
                self._fetch_mts(session, MTS_RECEIPTS_PATH, "current_month_net", ingest.mts_receipts_line, start, as_of_date),
                self._fetch_tic(session, start, as_of_date),
                return_exceptions=True,
            )

        series: dict[str, Any] = {}
        for name, result in zip(fields, results):
            if isinstance(result, Exception):
                logger.warning(f"Failed to fetch {name}: {result}")
            series[name] = _safe(result, {} if name == "tic_holdings" else [])
            logger.debug(f"{name}: {len(series[name])} observations")

        return RawSeriesBundle(as_of_date=as_of_date, **series)

    async def _get_json(self, session: aiohttp.ClientSession, url: str, params: dict) -> Any:
        async with session.get(url, params=params) as response:
            response.raise_for_status()
            return await response.json(content_type=None)

    async def _fetch_fred(
        self, session: aiohttp.ClientSession, series_id: str, start: date, end: date
    ) -> list[TimePoint]:
        """Fetch one FRED series as observations newest first."""
        if not self.api_key:
            raise RuntimeError(f"FRED_API_KEY not set, cannot fetch {series_id}")
        params = {
            "series_id": series_id,
            "api_key": self.api_key,
            "file_type": "json",
            "observation_start": start.isoformat(),
            "observation_end": end.isoformat(),
            "sort_order": "desc",
        }
        data = await self._get_json(session, self.config.ingest.fred_base_url, params)
        return parse_fred_observations(data)

    async def _fetch_quotes(
        self, session: aiohttp.ClientSession, symbol: str, start: date, end: date
    ) -> list[TimePoint]:
        """Fetch daily closes for a symbol from the chart endpoint."""
        params = {
            "interval": "1d",
            "period1": _epoch(start),
            "period2": _epoch(end + timedelta(days=1)),
        }
        url = f"{self.config.ingest.quote_base_url}/{symbol}"
        data = await self._get_json(session, url, params)
        return [p for p in parse_quote_chart(data) if p.date <= end]

    async def _fetch_auctions(
        self, session: aiohttp.ClientSession, start: date, end: date
    ) -> list[AuctionResult]:
        """Fetch Treasury auction results, newest first."""
        params = {
            "filter": f"auction_date:gte:{start.isoformat()},auction_date:lte:{end.isoformat()}",
            "sort": "-auction_date",
            "page[size]": 1000,
        }
        url = self.config.ingest.fiscal_base_url + AUCTIONS_PATH
        data = await self._get_json(session, url, params)
        return parse_auctions(data, self.when_issued_yields)

    async def _fetch_mts(
        self,
        session: aiohttp.ClientSession,
        path: str,
        value_field: str,
        line: str,
        start: date,
        end: date,
    ) -> list[TimePoint]:
        """Fetch one Monthly Treasury Statement line as monthly values, newest first."""
        params = {
            "filter": f"record_date:gte:{start.isoformat()},record_date:lte:{end.isoformat()}",
            "sort": "-record_date",
            "page[size]": 10000,
        }
        url = self.config.ingest.fiscal_base_url + path
        data = await self._get_json(session, url, params)
        return parse_mts_rows(data, value_field, line)

    async def _fetch_tic(
        self, session: aiohttp.ClientSession, start: date, end: date
    ) -> dict[str, list[TimePoint]]:
        """Fetch TIC Treasury holdings by country."""
        params = {
            "filter": f"record_date:gte:{start.isoformat()},record_date:lte:{end.isoformat()}",
            "sort": "-record_date",
            "page[size]": 10000,
        }
        url = self.config.ingest.fiscal_base_url + TIC_HOLDINGS_PATH
        data = await self._get_json(session, url, params)
        return parse_tic_holdings(data)


def _safe(val: Any, default: Any) -> Any:
    """Return default if val is an exception."""
    return default if isinstance(val, Exception) else val


def _epoch(d: date) -> int:
    return int(datetime.combine(d, time.min, tzinfo=timezone.utc).timestamp())


def _float(raw: Any) -> Optional[float]:
    """Numeric field from an API payload. Missing markers ('.', '', 'null') -> None."""
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        return float(raw)
    text = str(raw).strip().replace(",", "")
    if text in ("", ".", "null", "None", "N/A"):
        return None
    try:
        return float(text)
    except ValueError:
        return None


def _date(raw: Any) -> Optional[date]:
    try:
        return date.fromisoformat(str(raw)[:10])
    except ValueError:
        return None


def _newest_first(points: list[TimePoint]) -> list[TimePoint]:
    return sorted(points, key=lambda p: p.date, reverse=True)


def parse_fred_observations(data: dict) -> list[TimePoint]:
    """FRED observations -> TimePoints newest first. '.' values become None."""
    points = []
    for obs in data.get("observations", []):
        d = _date(obs.get("date"))
        if d is None:
            continue
        points.append(TimePoint(date=d, value=_float(obs.get("value"))))
    return _newest_first(points)


def parse_quote_chart(data: dict) -> list[TimePoint]:
    """Chart payload (timestamps + closes) -> daily closes newest first."""
    results = (data.get("chart") or {}).get("result") or []
    if not results:
        return []
    result = results[0]
    timestamps = result.get("timestamp") or []
    quotes = (result.get("indicators") or {}).get("quote") or [{}]
    closes = quotes[0].get("close") or []

    by_date: dict[date, Optional[float]] = {}
    for ts, close in zip(timestamps, closes):
        d = datetime.fromtimestamp(ts, tz=timezone.utc).date()
        by_date[d] = _float(close)
    return _newest_first([TimePoint(date=d, value=v) for d, v in by_date.items()])


def parse_auctions(data: dict, when_issued_yields: dict[str, float] | None = None) -> list[AuctionResult]:
    """
    Treasury auction rows -> AuctionResult newest first.

    Notes and bonds report high_yield; bills only high_investment_rate.
    When-issued yields are attached by CUSIP when supplied.
    """
    when_issued_yields = when_issued_yields or {}
    auctions = []
    for row in data.get("data", []):
        auction_date = _date(row.get("auction_date"))
        if auction_date is None:
            continue
        high_yield = _float(row.get("high_yield"))
        if high_yield is None:
            high_yield = _float(row.get("high_investment_rate"))
        cusip = row.get("cusip")
        auctions.append(
            AuctionResult(
                auction_date=auction_date,
                security_term=str(row.get("security_term") or ""),
                high_yield=high_yield,
                when_issued_yield=when_issued_yields.get(cusip) if cusip else None,
                cusip=cusip,
                bid_to_cover=_float(row.get("bid_to_cover_ratio")),
            )
        )
    return sorted(auctions, key=lambda a: a.auction_date, reverse=True)


def parse_mts_rows(data: dict, value_field: str, line: Optional[str] = None) -> list[TimePoint]:
    """
    Monthly Treasury Statement rows -> one monthly value per record date.

    Args:
        data: API payload with a 'data' list.
        value_field: Monthly (not fiscal-year-to-date) column to read.
        line: classification_desc to keep; None keeps every row.

    Returns:
        TimePoints newest first. The first matching row per date wins.
    """
    by_date: dict[date, Optional[float]] = {}
    for row in data.get("data", []):
        if line is not None and row.get("classification_desc") != line:
            continue
        d = _date(row.get("record_date"))
        if d is None or d in by_date:
            continue
        by_date[d] = _float(row.get(value_field))
    return _newest_first([TimePoint(date=d, value=v) for d, v in by_date.items()])


def parse_tic_holdings(data: dict) -> dict[str, list[TimePoint]]:
    """
    TIC rows -> Treasury holdings per country, newest first ($ billions).

    Country comes from country_name (or country), the value from
    holdings (or us_treasury_securities). The first row per country
    and date wins.
    """
    by_country: dict[str, dict[date, Optional[float]]] = {}
    for row in data.get("data", []):
        country = row.get("country_name") or row.get("country")
        d = _date(row.get("record_date"))
        if not country or d is None:
            continue
        value = _float(row.get("holdings"))
        if value is None:
            value = _float(row.get("us_treasury_securities"))
        dates = by_country.setdefault(str(country).strip(), {})
        if d not in dates:
            dates[d] = value
    return {
        country: _newest_first([TimePoint(date=d, value=v) for d, v in dates.items()])
        for country, dates in by_country.items()
    }
