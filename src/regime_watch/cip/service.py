"""
REGIME WATCH - CIP Basis Proxy Service

Owns the mutable process-wide CIP state (foreign policy rates,
per-currency calibration, manual basis overrides) and a memo table of
values derived from it. Callers create and hold the instance.

Every administrative mutation validates first, applies, then deletes
every memo key computed from the old parameters before returning.
Reads and writes share one lock, so no stale derived value is visible
after a write returns.
"""

from __future__ import annotations

import dataclasses
import hashlib
import logging
import math
import threading
from datetime import date
from typing import Any, Callable, Iterable, Optional

import pandas as pd

from regime_watch.cache import TTLCache
from regime_watch.cip.basis import compute_basis, rate_differential, total_hedging_cost
from regime_watch.config import CipConfig, ConfigError
from regime_watch.features.hedging import japanese_hedging_spread
from regime_watch.features.trends import six_month_change, sort_newest_first, value_on_or_before
from regime_watch.types import (
    ActualForwardBasis,
    AdminUpdate,
    BasisEstimate,
    BasisMethod,
    BasisSeries,
    CalibratedProxyBasis,
    CalibrationParams,
    HedgingCost,
    HedgingSpread,
    PolicyRates,
    TimePoint,
)

logger = logging.getLogger(__name__)

# Which policy rate each foreign currency is measured against
POLICY_RATE_FIELD = {"eur": "ecb", "jpy": "boj"}

# Memo key prefixes derived from each currency's parameters
DERIVED_KEY_PREFIXES = {
    "eur": ("cip_eurusd_",),
    "jpy": ("cip_jpyusd_", "cip_hedging_cost", "basis_japan_hedging_spread"),
}

PROXY_NOTES = {
    "eur": (
        "Calculated from the Fed Funds rate and ECB deposit rate differential with "
        "historical calibration. Directionally correct, typically within 10-15 bps of actual."
    ),
    "jpy": (
        "Calculated from the Fed Funds rate and BOJ policy rate with JPY-specific "
        "calibration, including a structural premium for life insurer hedging demand."
    ),
}


def _fingerprint(series: list[TimePoint]) -> str:
    raw = "|".join(f"{p.date.isoformat()}={p.value!r}" for p in series)
    return hashlib.sha1(raw.encode()).hexdigest()[:12]


def _require_number(value: Any, name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"{name} must be a number, got {value!r}")
    if not math.isfinite(value):
        raise ConfigError(f"{name} must be finite, got {value!r}")
    return value


class CipBasisService:
    """
    Cross-currency basis proxies from policy-rate differentials.

    Supported currencies are the keys of the calibration table (eur, jpy).
    USD rate series are passed in by the caller, newest first.
    """

    def __init__(self, config: CipConfig | None = None, cache: TTLCache | None = None) -> None:
        self.config = config or CipConfig()
        self._policy_rates: PolicyRates = self.config.policy_rates
        self._calibration: dict[str, CalibrationParams] = dict(self.config.calibration)
        self._manual: dict[str, BasisSeries] = {}
        self._cache = cache if cache is not None else TTLCache(default_ttl=self.config.cache_ttl_seconds)
        self._lock = threading.RLock()

    # --- State accessors ---

    @property
    def policy_rates(self) -> PolicyRates:
        return self._policy_rates

    @property
    def calibration(self) -> dict[str, CalibrationParams]:
        return dict(self._calibration)

    @property
    def cache(self) -> TTLCache:
        return self._cache

    # --- Calculations ---

    def basis_estimate(
        self,
        currency: str,
        usd_rate: Optional[float],
        forward_points: Optional[float] = None,
        spot: Optional[float] = None,
        tenor: Optional[str] = None,
    ) -> BasisEstimate:
        """Single basis value: actual CIP deviation when forwards are given, else the proxy."""
        cur = self._currency(currency)
        with self._lock:
            foreign = self._foreign_rate(cur)
            if forward_points is not None and spot is not None:
                inputs = ActualForwardBasis(
                    usd_rate=usd_rate,
                    foreign_rate=foreign,
                    forward_points=forward_points,
                    spot=spot,
                    tenor=tenor or self.config.tenor,
                )
            else:
                inputs = CalibratedProxyBasis(
                    usd_rate=usd_rate,
                    foreign_rate=foreign,
                    currency=cur,
                    calibration=self._calibration[cur],
                )
            return compute_basis(inputs)

    def basis_proxy(self, currency: str, usd_rates: Iterable[TimePoint]) -> BasisSeries:
        """
        Calibrated basis proxy for a currency against USD.

        Args:
            currency: 'eur' or 'jpy'.
            usd_rates: USD policy rate series (e.g. Fed Funds).

        Returns:
            BasisSeries with current level and per-date history.
        """
        cur = self._currency(currency)
        points = sort_newest_first(usd_rates)[: self.config.history_limit]
        key = f"cip_{cur}usd_{self.config.tenor.lower()}_proxy:{_fingerprint(points)}"
        return self._memo(key, lambda: self._compute_proxy(cur, points))

    def basis_swap(self, pair: str, usd_rates: Iterable[TimePoint], term: Optional[str] = None) -> BasisSeries:
        """Basis for a pair: the manual override when one is set, otherwise the proxy."""
        cur = self._currency(pair)
        term = term or self.config.tenor
        with self._lock:
            manual = self._manual.get(self._manual_key(cur, term))
            if manual is not None:
                return manual
            return self.basis_proxy(cur, usd_rates)

    def hedging_cost(self, usd_rates: Iterable[TimePoint]) -> HedgingCost:
        """
        Total USD->JPY FX hedging cost in percent.

        total = (usd_rate - boj_rate) - jpy_basis_bps / 100
        """
        points = sort_newest_first(usd_rates)[: self.config.history_limit]
        key = f"cip_hedging_cost:{_fingerprint(points)}"
        return self._memo(key, lambda: self._compute_hedging_cost(points))

    def japanese_hedging_spread(
        self,
        us10y: Iterable[TimePoint],
        jgb10y: Iterable[TimePoint],
        usd_rates: Iterable[TimePoint],
    ) -> HedgingSpread:
        """
        Japanese hedging spread using the CIP-based hedging cost.

        JGB yields and hedge costs are joined to each US 10Y date as of
        that date, so monthly JGB data lines up with daily Treasury data.
        """
        us = sort_newest_first(us10y)[: self.config.history_limit]
        jgb = sort_newest_first(jgb10y)
        usd = sort_newest_first(usd_rates)[: self.config.history_limit]
        key = (
            f"basis_japan_hedging_spread:{_fingerprint(us)}:"
            f"{_fingerprint(jgb)}:{_fingerprint(usd)}"
        )
        return self._memo(key, lambda: self._compute_spread(us, jgb, usd))

    # --- Administrative operations ---

    def update_policy_rates(self, ecb: Optional[float] = None, boj: Optional[float] = None) -> AdminUpdate:
        """Replace foreign policy rates. Clears every memo key that used the old rates."""
        changes = {}
        for name, value in (("ecb", ecb), ("boj", boj)):
            if value is not None:
                changes[name] = _require_number(value, name)

        with self._lock:
            cleared: list[str] = []
            if changes:
                self._policy_rates = dataclasses.replace(self._policy_rates, **changes)
                currencies = [cur for cur, rate in POLICY_RATE_FIELD.items() if rate in changes]
                cleared = self._invalidate(currencies)
            rates = self._policy_rates

        logger.info(f"Policy rates now {rates.to_dict()} (changed={changes}, cleared={cleared})")
        return AdminUpdate(
            action="update_policy_rates",
            updated={"policy_rates": rates.to_dict(), "changed": changes},
            cleared_keys=cleared,
        )

    def update_calibration(
        self,
        currency: str,
        base_offset: Optional[float] = None,
        rate_sensitivity: Optional[float] = None,
        structural_premium: Optional[float] = None,
    ) -> AdminUpdate:
        """
        Update calibration for one currency.

        Raises:
            ConfigError: unknown currency, non-numeric value, or a structural
                premium for a currency other than JPY. State is untouched.
        """
        cur = self._currency(currency)
        changes = {}
        if base_offset is not None:
            changes["base_offset"] = _require_number(base_offset, "base_offset")
        if rate_sensitivity is not None:
            changes["rate_sensitivity"] = _require_number(rate_sensitivity, "rate_sensitivity")
        if structural_premium is not None:
            if cur != "jpy":
                raise ConfigError(f"structural_premium applies to JPY only, not '{cur}'")
            changes["structural_premium"] = _require_number(structural_premium, "structural_premium")

        with self._lock:
            cleared: list[str] = []
            if changes:
                self._calibration[cur] = dataclasses.replace(self._calibration[cur], **changes)
                cleared = self._invalidate([cur])
            params = self._calibration[cur]

        logger.info(f"Calibration for {cur} now {params.to_dict()} (cleared={cleared})")
        return AdminUpdate(
            action="update_calibration",
            updated={"currency": cur, "calibration": params.to_dict()},
            cleared_keys=cleared,
        )

    def set_manual_basis(self, pair: str, value: float, on: date, term: Optional[str] = None) -> AdminUpdate:
        """Record a manually observed basis level. Bypasses the proxy for this pair."""
        cur = self._currency(pair)
        value = _require_number(value, "value")
        if not isinstance(on, date):
            raise ConfigError(f"on must be a date, got {on!r}")
        term = term or self.config.tenor

        with self._lock:
            key = self._manual_key(cur, term)
            existing = self._manual.get(key)
            history = [p for p in (existing.history if existing else []) if p.date != on]
            history = sort_newest_first(history + [TimePoint(date=on, value=value)])
            self._manual[key] = BasisSeries(
                pair=f"{cur}usd",
                term=term,
                current=history[0].value,
                as_of=history[0].date,
                method=BasisMethod.MANUAL,
                methodology_note="Manually entered value",
                history=history,
            )
            cleared = self._invalidate([cur])

        logger.info(f"Manual basis for {cur}usd {term}: {value} on {on}")
        return AdminUpdate(
            action="set_manual_basis",
            updated={"pair": f"{cur}usd", "term": term, "value": value, "date": on.isoformat()},
            cleared_keys=cleared,
        )

    def clear_manual_basis(self, pair: str, term: Optional[str] = None) -> AdminUpdate:
        """Drop a manual override. The pair returns to the CIP proxy."""
        cur = self._currency(pair)
        term = term or self.config.tenor
        with self._lock:
            removed = self._manual.pop(self._manual_key(cur, term), None) is not None
            cleared = self._invalidate([cur]) if removed else []

        logger.info(f"Manual basis override for {cur}usd {term} cleared (existed={removed})")
        return AdminUpdate(
            action="clear_manual_basis",
            updated={"pair": f"{cur}usd", "term": term, "removed": removed},
            cleared_keys=cleared,
        )

    # --- Internals ---

    def _currency(self, pair: str) -> str:
        if not isinstance(pair, str):
            raise ConfigError(f"currency must be a string, got {pair!r}")
        cur = pair.lower().replace("/", "").strip()
        if len(cur) == 6 and cur.endswith("usd"):
            cur = cur[:3]
        if cur not in self._calibration or cur not in POLICY_RATE_FIELD:
            raise ConfigError(f"Unknown currency: {pair}")
        return cur

    @staticmethod
    def _manual_key(cur: str, term: str) -> str:
        return f"{cur}usd_{term.lower()}"

    def _foreign_rate(self, cur: str) -> float:
        return getattr(self._policy_rates, POLICY_RATE_FIELD[cur])

    def _memo(self, key: str, compute: Callable[[], Any]) -> Any:
        with self._lock:
            cached = self._cache.get(key)
            if cached is not None:
                logger.debug(f"Memo hit {key}")
                return cached
            value = compute()
            self._cache.set(key, value)
            return value

    def _invalidate(self, currencies: Iterable[str]) -> list[str]:
        cleared: list[str] = []
        for cur in currencies:
            for prefix in DERIVED_KEY_PREFIXES.get(cur, ()):
                cleared.extend(self._cache.delete_prefix(prefix))
        return cleared

    def _compute_proxy(self, cur: str, points: list[TimePoint]) -> BasisSeries:
        foreign = self._foreign_rate(cur)
        cal = self._calibration[cur]
        inputs = {
            "foreign_rate": foreign,
            "calibration": cal.to_dict(),
        }
        if not points:
            logger.warning(f"No USD rate data for {cur}usd basis proxy")
            return BasisSeries(
                pair=f"{cur}usd",
                term=self.config.tenor,
                current=None,
                as_of=None,
                method=BasisMethod.UNAVAILABLE,
                methodology_note="USD policy rate series unavailable",
                inputs=inputs,
            )

        def estimate(usd_rate: Optional[float]) -> BasisEstimate:
            return compute_basis(
                CalibratedProxyBasis(usd_rate=usd_rate, foreign_rate=foreign, currency=cur, calibration=cal)
            )

        current = estimate(points[0].value)
        history = [TimePoint(date=p.date, value=estimate(p.value).value_bps) for p in points]
        inputs.update(usd_rate=points[0].value, rate_differential=current.rate_differential)
        return BasisSeries(
            pair=f"{cur}usd",
            term=self.config.tenor,
            current=current.value_bps,
            as_of=points[0].date,
            method=current.method,
            methodology_note=PROXY_NOTES[cur],
            history=history,
            inputs=inputs,
        )

    def _compute_hedging_cost(self, points: list[TimePoint]) -> HedgingCost:
        boj = self._policy_rates.boj
        jpy = self.basis_swap("jpy", points)
        if not points:
            return HedgingCost(
                total_hedge_cost=None,
                rate_differential=None,
                basis_adjustment=None,
                usd_rate=None,
                boj_rate=boj,
                basis_bps=jpy.current,
                method=BasisMethod.UNAVAILABLE,
                as_of=None,
            )

        usd_rate = points[0].value
        diff = rate_differential(usd_rate, boj)
        basis_by_date = {p.date: p.value for p in jpy.history}
        history = [
            TimePoint(
                date=p.date,
                value=total_hedging_cost(rate_differential(p.value, boj), basis_by_date.get(p.date, jpy.current)),
            )
            for p in points
        ]
        total = total_hedging_cost(diff, jpy.current)
        return HedgingCost(
            total_hedge_cost=total,
            rate_differential=diff,
            basis_adjustment=jpy.current / 100 if jpy.current is not None else None,
            usd_rate=usd_rate,
            boj_rate=boj,
            basis_bps=jpy.current,
            method=jpy.method if total is not None else BasisMethod.UNAVAILABLE,
            as_of=points[0].date,
            history=history,
        )

    def _compute_spread(self, us: list[TimePoint], jgb: list[TimePoint], usd: list[TimePoint]) -> HedgingSpread:
        cost = self.hedging_cost(usd)
        fx = cost.total_hedge_cost
        if not us or not jgb:
            logger.warning("Hedging spread needs both US 10Y and JGB 10Y data")
            return HedgingSpread(
                current=None,
                as_of=us[0].date if us else None,
                us10y=us[0].value if us else None,
                jgb10y=jgb[0].value if jgb else None,
                fx_hedge_cost=fx,
                method=cost.method,
            )

        current_us = us[0]
        current_jgb = value_on_or_before(jgb, current_us.date)
        jgb_value = current_jgb.value if current_jgb is not None else None
        if current_jgb is None:
            logger.warning(f"No JGB 10Y observation on or before {current_us.date}")
        spread = japanese_hedging_spread(current_us.value, jgb_value, fx)

        history = _align_spreads(us, jgb, cost.history, fallback_cost=fx)
        trend_series = [TimePoint(date=current_us.date, value=spread)] + [
            p for p in history if p.date != current_us.date
        ]
        return HedgingSpread(
            current=spread,
            as_of=current_us.date,
            us10y=current_us.value,
            jgb10y=jgb_value,
            fx_hedge_cost=fx,
            method=cost.method,
            six_month_change=six_month_change(trend_series) if spread is not None else None,
            history=history,
        )


def _frame(points: list[TimePoint], column: str) -> pd.DataFrame:
    observed = [p for p in points if p.value is not None]
    return pd.DataFrame(
        {
            "date": pd.to_datetime([p.date for p in observed]),
            column: [float(p.value) for p in observed],
        }
    ).sort_values("date")


def _align_spreads(
    us: list[TimePoint],
    jgb: list[TimePoint],
    costs: list[TimePoint],
    fallback_cost: Optional[float],
) -> list[TimePoint]:
    """Spread history on US 10Y dates, joining JGB yield and hedge cost as of each date."""
    merged = pd.merge_asof(_frame(us, "us10y"), _frame(jgb, "jgb10y"), on="date", direction="backward")
    cost_frame = _frame(costs, "hedge_cost")
    if cost_frame.empty:
        merged["hedge_cost"] = float("nan")
    else:
        merged = pd.merge_asof(merged, cost_frame, on="date", direction="backward")
    if fallback_cost is not None:
        merged["hedge_cost"] = merged["hedge_cost"].fillna(fallback_cost)

    spreads = []
    for row in merged.itertuples(index=False):
        if pd.isna(row.jgb10y) or pd.isna(row.hedge_cost):
            continue
        spreads.append(
            TimePoint(
                date=row.date.date(),
                value=japanese_hedging_spread(row.us10y, row.jgb10y, row.hedge_cost),
            )
        )
    spreads.reverse()
    return spreads
