"""
REGIME WATCH - Treasury Auction Tails

Tail (bps) = (auction high yield - when-issued yield) x 100
Positive tail = weak demand (Treasury paid more than expected).
"""

from __future__ import annotations

from datetime import date
from typing import Iterable, Optional

from regime_watch.features.trends import months_before
from regime_watch.types import AuctionResult, AuctionTailMetrics

LONG_DATED_TERMS = ("20", "30")


def auction_tail(high_yield: Optional[float], when_issued_yield: Optional[float]) -> Optional[float]:
    """Tail in basis points. None if either yield is missing."""
    if high_yield is None or when_issued_yield is None:
        return None
    return (high_yield - when_issued_yield) * 100


def average_auction_tail(auctions: Iterable[AuctionResult]) -> Optional[float]:
    """
    Mean tail across auctions.

    Auctions missing either yield are excluded, not zero-filled.
    Returns None if no auction has both yields.
    """
    tails = [auction_tail(a.high_yield, a.when_issued_yield) for a in auctions]
    tails = [t for t in tails if t is not None]
    if not tails:
        return None
    return sum(tails) / len(tails)


def _term_years(security_term: str) -> Optional[str]:
    term = security_term.lower().replace("-", " ")
    for years in LONG_DATED_TERMS:
        if term.startswith(f"{years} year"):
            return years
    return None


def long_dated_auctions(
    auctions: Iterable[AuctionResult],
    as_of: date,
    months: int,
) -> list[AuctionResult]:
    """20-year and 30-year auctions dated within the last N calendar months, newest first."""
    start = months_before(as_of, months)
    recent = [
        a
        for a in auctions
        if _term_years(a.security_term) is not None and start <= a.auction_date <= as_of
    ]
    return sorted(recent, key=lambda a: a.auction_date, reverse=True)


def _latest_tail(auctions: list[AuctionResult], years: str) -> Optional[float]:
    for a in auctions:
        if _term_years(a.security_term) == years:
            tail = auction_tail(a.high_yield, a.when_issued_yield)
            if tail is not None:
                return tail
    return None


def auction_tail_metrics(
    auctions: Iterable[AuctionResult],
    as_of: date,
    months: int = 3,
) -> AuctionTailMetrics:
    """Average tail over recent long-dated auctions plus the latest 20Y and 30Y tails."""
    recent = long_dated_auctions(auctions, as_of, months)
    return AuctionTailMetrics(
        average_tail=average_auction_tail(recent),
        last_20y_tail=_latest_tail(recent, "20"),
        last_30y_tail=_latest_tail(recent, "30"),
        auctions=recent,
    )
