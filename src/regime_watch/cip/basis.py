"""
REGIME WATCH - Covered Interest Parity Basis

CIP relationship: basis ~ (Forward/Spot - 1) x (360/days) - (r_usd - r_foreign)

With forward points the deviation is computed directly. Without them
(the common case for free data) the basis is approximated from the
policy-rate differential using a per-currency calibration:

    basis = base_offset - rate_diff x rate_sensitivity [+ structural_premium (JPY)]

Every result is tagged with the method that produced it.
"""

from __future__ import annotations

import re
from typing import Optional

from regime_watch.types import (
    ActualForwardBasis,
    BasisEstimate,
    BasisInputs,
    BasisMethod,
    CalibratedProxyBasis,
)

DEFAULT_TENOR_DAYS = 1825  # 5Y

_TENOR_RE = re.compile(r"^(\d+)([YMD])$", re.IGNORECASE)


def tenor_days(tenor: str) -> int:
    """'5Y' -> 1825, '3M' -> 90, '30D' -> 30. Unparseable tenors default to 5Y."""
    match = _TENOR_RE.match(tenor.strip())
    if not match:
        return DEFAULT_TENOR_DAYS
    n = int(match.group(1))
    unit = match.group(2).upper()
    days = {"Y": 365, "M": 30, "D": 1}[unit] * n
    return days or DEFAULT_TENOR_DAYS


def rate_differential(usd_rate: Optional[float], foreign_rate: Optional[float]) -> Optional[float]:
    if usd_rate is None or foreign_rate is None:
        return None
    return usd_rate - foreign_rate


def actual_basis(inputs: ActualForwardBasis) -> Optional[float]:
    """CIP deviation in bps from forward points and spot."""
    diff = rate_differential(inputs.usd_rate, inputs.foreign_rate)
    if diff is None or inputs.forward_points is None or inputs.spot is None or inputs.spot == 0:
        return None
    forward_premium = (inputs.forward_points / inputs.spot) * (360 / tenor_days(inputs.tenor)) * 100
    return (forward_premium - diff) * 100


def proxy_basis(inputs: CalibratedProxyBasis) -> Optional[float]:
    """Calibrated basis estimate in bps. Basis widens (more negative) as USD rates rise."""
    diff = rate_differential(inputs.usd_rate, inputs.foreign_rate)
    if diff is None:
        return None
    cal = inputs.calibration
    basis = cal.base_offset - diff * cal.rate_sensitivity
    if inputs.currency.lower() == "jpy" and cal.structural_premium is not None:
        basis += cal.structural_premium
    return basis


def compute_basis(inputs: BasisInputs) -> BasisEstimate:
    """Dispatch on the input variant and tag the result with its method."""
    if isinstance(inputs, ActualForwardBasis):
        value, method = actual_basis(inputs), BasisMethod.ACTUAL
    elif isinstance(inputs, CalibratedProxyBasis):
        value, method = proxy_basis(inputs), BasisMethod.PROXY
    else:
        raise TypeError(f"Unsupported basis inputs: {type(inputs).__name__}")

    diff = rate_differential(inputs.usd_rate, inputs.foreign_rate)
    if value is None:
        method = BasisMethod.UNAVAILABLE
    return BasisEstimate(value_bps=value, method=method, rate_differential=diff)


def total_hedging_cost(rate_diff: Optional[float], basis_bps: Optional[float]) -> Optional[float]:
    """
    Total FX hedging cost in percent: rate differential minus the basis (bps -> %).

    A negative basis adds to the cost. A missing basis yields None,
    it is never treated as zero.
    """
    if rate_diff is None or basis_bps is None:
        return None
    return rate_diff - basis_bps / 100
