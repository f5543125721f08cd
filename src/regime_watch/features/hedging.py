"""
REGIME WATCH - Japanese Hedging Spread

Spread (bps) = (US_10Y - JGB_10Y - FX_HEDGE_COST) x 100

When negative, Japanese institutions earn less on hedged Treasuries
than on JGBs and have a financial incentive to sell.
"""

from __future__ import annotations

from typing import Optional


def japanese_hedging_spread(
    us10y: Optional[float],
    jgb10y: Optional[float],
    fx_hedge_cost: Optional[float],
) -> Optional[float]:
    """
    Compute the Japanese hedging cost spread.

    Args:
        us10y: US 10-year Treasury yield (percent).
        jgb10y: Japan 10-year government bond yield (percent).
        fx_hedge_cost: Annualized USD->JPY hedging cost (percent).

    Returns:
        Spread in basis points, or None if any input is missing.
    """
    if us10y is None or jgb10y is None or fx_hedge_cost is None:
        return None
    return (us10y - jgb10y - fx_hedge_cost) * 100


def estimate_fx_hedge_cost(
    usd_short_rate: Optional[float],
    jp_short_rate: Optional[float],
    basis_adjustment: Optional[float] = 0.0,
) -> Optional[float]:
    """Covered interest parity baseline: rate differential plus a basis adjustment (percent)."""
    if usd_short_rate is None or jp_short_rate is None or basis_adjustment is None:
        return None
    return (usd_short_rate - jp_short_rate) + basis_adjustment
