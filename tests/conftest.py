"""Shared fixtures for REGIME WATCH tests."""

import sys
from datetime import date
from pathlib import Path

import pytest

# Ensure regime_watch is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from regime_watch.cip.service import CipBasisService
from regime_watch.config import MonitorConfig
from regime_watch.features.trends import months_before
from regime_watch.types import AuctionResult, RawSeriesBundle, TimePoint

AS_OF = date(2026, 1, 15)


def monthly(end: date, values: list) -> list[TimePoint]:
    """Monthly series ending at `end`, values given oldest first; returned newest first."""
    n = len(values)
    return [TimePoint(date=months_before(end, n - 1 - i), value=v) for i, v in enumerate(values)][::-1]


def flat(end: date, value: float, months: int = 24) -> list[TimePoint]:
    return monthly(end, [value] * months)


@pytest.fixture
def config() -> MonitorConfig:
    return MonitorConfig()


@pytest.fixture
def cip_service(config) -> CipBasisService:
    return CipBasisService(config.cip)


@pytest.fixture
def sample_raw() -> RawSeriesBundle:
    """
    Mixed conditions as of 2026-01-15.

    Fed Funds 4.50 -> EUR basis -27 bps (NORMAL), JPY basis -91 bps,
    hedge cost 5.16% -> hedging spread -196 bps (CRITICAL).
    Auction tails 2.5 and 1.0 -> average 1.75 bps (NORMAL).
    Gold 2000 -> 2300 over 12 months, TLT flat -> RoC 0.15 (WARNING).
    TTM interest 950 / receipts 4700 -> 0.2021 (WARNING).
    """
    fiscal_end = date(2025, 12, 31)
    interest = monthly(fiscal_end, [999.0] + [80.0] * 11 + [70.0])
    receipts = monthly(fiscal_end, [1.0] + [400.0] * 11 + [300.0])

    gold = monthly(AS_OF, [2000.0 + 25.0 * i for i in range(13)])

    return RawSeriesBundle(
        as_of_date=AS_OF,
        us10y=flat(AS_OF, 4.20),
        jgb10y=flat(AS_OF, 1.00),
        fed_funds=flat(AS_OF, 4.50),
        gold_price=gold,
        tlt_price=flat(AS_OF, 90.0, 13),
        vix=flat(AS_OF, 18.0),
        hy_spread=flat(AS_OF, 3.50),
        sofr=flat(AS_OF, 4.40),
        tbill_3m=flat(AS_OF, 4.30),
        dollar_index=monthly(AS_OF, [120.0] * 12 + [115.0]),
        fed_balance_sheet=monthly(AS_OF, [7_000_000.0] * 12 + [6_800_000.0]),
        breakeven_5y=flat(AS_OF, 2.30),
        breakeven_10y=flat(AS_OF, 2.40),
        cpi=monthly(AS_OF, [300.0] * 12 + [309.0]),
        foreign_holdings=monthly(AS_OF, [8000.0] * 12 + [8100.0]),
        auctions=[
            AuctionResult(date(2025, 11, 19), "20-Year", high_yield=4.520, when_issued_yield=4.495),
            AuctionResult(date(2025, 12, 11), "30-Year", high_yield=4.800, when_issued_yield=4.790),
            AuctionResult(date(2025, 12, 10), "10-Year", high_yield=4.100, when_issued_yield=4.000),
            AuctionResult(date(2025, 8, 1), "30-Year", high_yield=5.000, when_issued_yield=4.900),
        ],
        interest_expense_monthly=interest,
        receipts_monthly=receipts,
    )
