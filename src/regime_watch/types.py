"""
REGIME WATCH - Core Type Definitions

All dataclasses and enums used across the system.
No logic beyond serialization, only data structures.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Optional, Union


def _iso(d: Optional[date]) -> Optional[str]:
    return d.isoformat() if d is not None else None


class Zone(Enum):
    """Discrete risk zone for a single indicator."""

    NORMAL = "NORMAL"
    WARNING = "WARNING"
    DANGER = "DANGER"
    CRITICAL = "CRITICAL"
    UNKNOWN = "UNKNOWN"


class BasisMethod(Enum):
    """How a cross-currency basis value was produced."""

    ACTUAL = "cip-deviation-actual"
    PROXY = "cip-deviation-proxy"
    MANUAL = "manual"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class TimePoint:
    """One observation. value=None means no observation, not zero."""

    date: date
    value: Optional[float] = None

    def to_dict(self) -> dict:
        return {"date": self.date.isoformat(), "value": self.value}


# --- Threshold configuration shapes ---


@dataclass(frozen=True)
class ThresholdBand:
    """Zone band in the indicator's native unit. min inclusive, max exclusive."""

    min: Optional[float] = None
    max: Optional[float] = None

    def to_dict(self) -> dict:
        out: dict = {}
        if self.min is not None:
            out["min"] = self.min
        if self.max is not None:
            out["max"] = self.max
        return out


@dataclass(frozen=True)
class IndicatorThresholds:
    """One band per zone name. Missing zones are simply not evaluated."""

    normal: Optional[ThresholdBand] = None
    warning: Optional[ThresholdBand] = None
    danger: Optional[ThresholdBand] = None
    critical: Optional[ThresholdBand] = None

    def band(self, zone_name: str) -> Optional[ThresholdBand]:
        return getattr(self, zone_name)

    def to_dict(self) -> dict:
        out: dict = {}
        for name in ("normal", "warning", "danger", "critical"):
            band = self.band(name)
            if band is not None:
                out[name] = band.to_dict()
        return out


@dataclass(frozen=True)
class LadderThresholds:
    """Flat ascending ladder for secondary indicators (VIX, HY spread)."""

    warning: float
    danger: float
    critical: float

    def to_dict(self) -> dict:
        return {"warning": self.warning, "danger": self.danger, "critical": self.critical}


@dataclass(frozen=True)
class IndicatorConfig:
    """Static metadata for one of the five core indicators."""

    key: str
    name: str
    short_name: str
    unit: str
    description: str
    thresholds: IndicatorThresholds
    inverted: bool = False
    gauge_min: float = 0.0
    gauge_max: float = 100.0
    display_multiplier: Optional[float] = None  # stored as fraction, shown x100
    critical_direction: str = "above"

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "name": self.name,
            "short_name": self.short_name,
            "unit": self.unit,
            "description": self.description,
            "thresholds": self.thresholds.to_dict(),
            "inverted": self.inverted,
            "gauge_min": self.gauge_min,
            "gauge_max": self.gauge_max,
            "display_multiplier": self.display_multiplier,
            "critical_direction": self.critical_direction,
        }


@dataclass(frozen=True)
class ZoneResult:
    """Zone classification for one value."""

    zone: Zone
    color: str
    description: str

    def to_dict(self) -> dict:
        return {"zone": self.zone.value, "color": self.color, "description": self.description}


# --- CIP basis ---


@dataclass(frozen=True)
class PolicyRates:
    """Foreign central bank policy rates (percent) absent a live feed."""

    ecb: float
    boj: float

    def to_dict(self) -> dict:
        return {"ecb": self.ecb, "boj": self.boj}


@dataclass(frozen=True)
class CalibrationParams:
    """Per-currency calibration of the basis proxy."""

    base_offset: float  # bps
    rate_sensitivity: float  # bps of basis per 1pp of rate differential
    structural_premium: Optional[float] = None  # bps, JPY only

    def to_dict(self) -> dict:
        out = {"base_offset": self.base_offset, "rate_sensitivity": self.rate_sensitivity}
        if self.structural_premium is not None:
            out["structural_premium"] = self.structural_premium
        return out


@dataclass(frozen=True)
class ActualForwardBasis:
    """Basis inputs when forward points and spot are observable."""

    usd_rate: Optional[float]
    foreign_rate: Optional[float]
    forward_points: Optional[float]
    spot: Optional[float]
    tenor: str = "5Y"


@dataclass(frozen=True)
class CalibratedProxyBasis:
    """Basis inputs for the calibrated rate-differential approximation."""

    usd_rate: Optional[float]
    foreign_rate: Optional[float]
    currency: str
    calibration: CalibrationParams


BasisInputs = Union[ActualForwardBasis, CalibratedProxyBasis]


@dataclass(frozen=True)
class BasisEstimate:
    """A single basis value tagged with the method that produced it."""

    value_bps: Optional[float]
    method: BasisMethod
    rate_differential: Optional[float] = None

    def to_dict(self) -> dict:
        return {
            "value_bps": self.value_bps,
            "method": self.method.value,
            "rate_differential": self.rate_differential,
        }


@dataclass(frozen=True)
class BasisSeries:
    """Current basis level for a currency pair plus its history."""

    pair: str
    term: str
    current: Optional[float]
    as_of: Optional[date]
    method: BasisMethod
    methodology_note: str
    history: list[TimePoint] = field(default_factory=list)
    inputs: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "pair": self.pair,
            "term": self.term,
            "current": self.current,
            "as_of": _iso(self.as_of),
            "method": self.method.value,
            "methodology_note": self.methodology_note,
            "history": [p.to_dict() for p in self.history],
            "inputs": self.inputs,
        }


@dataclass(frozen=True)
class HedgingCost:
    """Total USD->JPY hedging cost (percent) and its components."""

    total_hedge_cost: Optional[float]
    rate_differential: Optional[float]
    basis_adjustment: Optional[float]
    usd_rate: Optional[float]
    boj_rate: float
    basis_bps: Optional[float]
    method: BasisMethod
    as_of: Optional[date]
    history: list[TimePoint] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "total_hedge_cost": self.total_hedge_cost,
            "rate_differential": self.rate_differential,
            "basis_adjustment": self.basis_adjustment,
            "usd_rate": self.usd_rate,
            "boj_rate": self.boj_rate,
            "basis_bps": self.basis_bps,
            "method": self.method.value,
            "as_of": _iso(self.as_of),
            "history": [p.to_dict() for p in self.history],
        }


@dataclass(frozen=True)
class HedgingSpread:
    """Japanese hedging spread (bps) with inputs and history."""

    current: Optional[float]
    as_of: Optional[date]
    us10y: Optional[float]
    jgb10y: Optional[float]
    fx_hedge_cost: Optional[float]
    method: BasisMethod
    six_month_change: Optional[float] = None
    history: list[TimePoint] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "current": self.current,
            "as_of": _iso(self.as_of),
            "us10y": self.us10y,
            "jgb10y": self.jgb10y,
            "fx_hedge_cost": self.fx_hedge_cost,
            "method": self.method.value,
            "six_month_change": self.six_month_change,
            "history": [p.to_dict() for p in self.history],
        }


@dataclass(frozen=True)
class AdminUpdate:
    """Outcome of an administrative mutation."""

    action: str
    updated: dict
    cleared_keys: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"action": self.action, "updated": self.updated, "cleared_keys": self.cleared_keys}


# --- Indicator inputs and metrics ---


@dataclass(frozen=True)
class AuctionResult:
    """One Treasury auction. Yields in percent."""

    auction_date: date
    security_term: str
    high_yield: Optional[float] = None
    when_issued_yield: Optional[float] = None
    cusip: Optional[str] = None
    bid_to_cover: Optional[float] = None

    def to_dict(self) -> dict:
        return {
            "auction_date": self.auction_date.isoformat(),
            "security_term": self.security_term,
            "high_yield": self.high_yield,
            "when_issued_yield": self.when_issued_yield,
            "cusip": self.cusip,
            "bid_to_cover": self.bid_to_cover,
        }


@dataclass(frozen=True)
class AuctionTailMetrics:
    average_tail: Optional[float]
    last_20y_tail: Optional[float]
    last_30y_tail: Optional[float]
    auctions: list[AuctionResult] = field(default_factory=list)


@dataclass(frozen=True)
class GoldTreasuryMetrics:
    current_ratio: Optional[float]
    gold_price: Optional[float]
    treasury_price: Optional[float]
    as_of: Optional[date]
    roc_6m: Optional[float]
    roc_12m: Optional[float]
    history: list[TimePoint] = field(default_factory=list)


@dataclass(frozen=True)
class InterestExpenseMetrics:
    ttm_interest_expense: Optional[float]
    ttm_receipts: Optional[float]
    ratio: Optional[float]
    as_of: Optional[date]


@dataclass(frozen=True)
class BreakevenMetrics:
    """TIPS breakeven metrics (percent)."""

    five_year: Optional[float]
    ten_year: Optional[float]
    thirty_year_estimate: Optional[float]
    slope: Optional[float]
    slope_warning: Optional[bool]
    as_of: Optional[date]

    def to_dict(self) -> dict:
        return {
            "five_year": self.five_year,
            "ten_year": self.ten_year,
            "thirty_year_estimate": self.thirty_year_estimate,
            "slope": self.slope,
            "slope_warning": self.slope_warning,
            "as_of": _iso(self.as_of),
        }


@dataclass(frozen=True)
class CountryHoldings:
    """Treasury holdings of one holder ($ billions); changes in percent."""

    country: str
    current: Optional[float]
    as_of: Optional[date]
    six_month_change: Optional[float]
    twelve_month_change: Optional[float]
    components: dict = field(default_factory=dict)
    note: Optional[str] = None
    history: list[TimePoint] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "country": self.country,
            "current": self.current,
            "as_of": _iso(self.as_of),
            "six_month_change": self.six_month_change,
            "twelve_month_change": self.twelve_month_change,
            "components": self.components,
            "note": self.note,
        }


@dataclass(frozen=True)
class ForeignHoldingsSummary:
    total: CountryHoldings
    japan: CountryHoldings
    china: CountryHoldings
    data_lag_note: str

    def to_dict(self) -> dict:
        return {
            "total": self.total.to_dict(),
            "japan": self.japan.to_dict(),
            "china": self.china.to_dict(),
            "data_lag_note": self.data_lag_note,
        }


@dataclass(frozen=True)
class CentralBankGoldEntry:
    """One quarter of central-bank gold purchases, e.g. period '2025-Q3'."""

    period: str
    total_tonnes: float
    top_purchasers: dict = field(default_factory=dict)  # country -> tonnes

    def to_dict(self) -> dict:
        return {
            "period": self.period,
            "total_tonnes": self.total_tonnes,
            "top_purchasers": self.top_purchasers,
        }


@dataclass(frozen=True)
class CentralBankGold:
    rolling_12m_tonnes: Optional[float]
    top_purchasers: dict
    quarters: list[CentralBankGoldEntry]
    source: str
    note: str

    def to_dict(self) -> dict:
        return {
            "rolling_12m_tonnes": self.rolling_12m_tonnes,
            "top_purchasers": self.top_purchasers,
            "quarters": [q.to_dict() for q in self.quarters],
            "source": self.source,
            "note": self.note,
        }


# --- Stage assessment ---


@dataclass(frozen=True)
class IndicatorSnapshot:
    """Current values feeding the stage classifier. Any field may be None."""

    hedging_spread: Optional[float] = None  # bps
    basis_swap: Optional[float] = None  # bps, EUR/USD 5Y
    auction_tail: Optional[float] = None  # bps
    gold_treasury_roc: Optional[float] = None  # fraction, 12m
    interest_ratio: Optional[float] = None  # fraction
    vix: Optional[float] = None
    hy_spread: Optional[float] = None  # bps
    dollar_change: Optional[float] = None  # percent, 12m
    fed_balance_sheet_change: Optional[float] = None  # $bn, 12m
    inflation_breakeven: Optional[float] = None  # percent
    gold_change: Optional[float] = None  # percent, 12m
    foreign_holdings_change: Optional[float] = None  # percent, 12m
    cpi_annualized: Optional[float] = None  # percent

    def to_dict(self) -> dict:
        return dict(self.__dict__)


@dataclass(frozen=True)
class TriggeredStage:
    stage: int
    triggers: list[str]
    confidence: int

    def to_dict(self) -> dict:
        return {"stage": self.stage, "triggers": list(self.triggers), "confidence": self.confidence}


@dataclass(frozen=True)
class StageAssessment:
    """Crisis-stage verdict. Computed fresh on each evaluation."""

    stage: int
    stage_name: str
    confidence: int
    triggers: list[str]
    all_triggered_stages: list[TriggeredStage] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "stage": self.stage,
            "stage_name": self.stage_name,
            "confidence": self.confidence,
            "triggers": list(self.triggers),
            "all_triggered_stages": [s.to_dict() for s in self.all_triggered_stages],
        }


# --- Pipeline input / output ---


@dataclass(frozen=True)
class RawSeriesBundle:
    """Raw series from the ingest layer, each newest-first. Immutable."""

    as_of_date: date
    us10y: list[TimePoint] = field(default_factory=list)
    jgb10y: list[TimePoint] = field(default_factory=list)
    fed_funds: list[TimePoint] = field(default_factory=list)
    gold_price: list[TimePoint] = field(default_factory=list)
    tlt_price: list[TimePoint] = field(default_factory=list)
    vix: list[TimePoint] = field(default_factory=list)
    hy_spread: list[TimePoint] = field(default_factory=list)  # percent, as FRED reports
    sofr: list[TimePoint] = field(default_factory=list)
    tbill_3m: list[TimePoint] = field(default_factory=list)
    dollar_index: list[TimePoint] = field(default_factory=list)
    fed_balance_sheet: list[TimePoint] = field(default_factory=list)  # $ millions
    breakeven_5y: list[TimePoint] = field(default_factory=list)
    breakeven_10y: list[TimePoint] = field(default_factory=list)
    cpi: list[TimePoint] = field(default_factory=list)  # index level
    foreign_holdings: list[TimePoint] = field(default_factory=list)  # $ billions
    auctions: list[AuctionResult] = field(default_factory=list)
    interest_expense_monthly: list[TimePoint] = field(default_factory=list)
    receipts_monthly: list[TimePoint] = field(default_factory=list)
    tic_holdings: dict[str, list[TimePoint]] = field(default_factory=dict)  # country -> $ billions


@dataclass(frozen=True)
class IndicatorReading:
    """One core indicator with its zone and echoed configuration."""

    key: str
    value: Optional[float]
    as_of: Optional[date]
    zone: ZoneResult
    config: IndicatorConfig
    extras: dict = field(default_factory=dict)
    note: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "value": self.value,
            "as_of": _iso(self.as_of),
            "zone": self.zone.to_dict(),
            "config": self.config.to_dict(),
            "extras": self.extras,
            "note": self.note,
        }


@dataclass(frozen=True)
class SecondaryReading:
    """Secondary market indicator, optionally classified on a flat ladder."""

    key: str
    name: str
    value: Optional[float]
    as_of: Optional[date]
    zone: Optional[ZoneResult] = None

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "name": self.name,
            "value": self.value,
            "as_of": _iso(self.as_of),
            "zone": self.zone.to_dict() if self.zone is not None else None,
        }


@dataclass(frozen=True)
class IndicatorReport:
    """Final REGIME WATCH output."""

    date: date
    indicators: dict[str, IndicatorReading]
    secondary: dict[str, SecondaryReading]
    breakevens: BreakevenMetrics
    snapshot: IndicatorSnapshot
    assessment: StageAssessment
    holdings: Optional[ForeignHoldingsSummary] = None
    central_bank_gold: Optional[CentralBankGold] = None

    def to_dict(self) -> dict:
        """Serialize to output JSON format."""
        return {
            "date": self.date.isoformat(),
            "indicators": {k: v.to_dict() for k, v in self.indicators.items()},
            "secondary": {k: v.to_dict() for k, v in self.secondary.items()},
            "breakevens": self.breakevens.to_dict(),
            "holdings": self.holdings.to_dict() if self.holdings else None,
            "central_bank_gold": self.central_bank_gold.to_dict() if self.central_bank_gold else None,
            "snapshot": self.snapshot.to_dict(),
            "assessment": self.assessment.to_dict(),
        }

    def to_json(self) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict(), indent=2)


@dataclass(frozen=True)
class Alert:
    """Threshold alert raised by the alert monitor."""

    id: str
    type: str  # THRESHOLD_BREACH | THRESHOLD_IMPROVEMENT | CRITICAL_LEVEL
    indicator: str
    indicator_name: str
    message: str
    timestamp: float
    new_zone: Zone
    current_value: float
    previous_zone: Optional[Zone] = None
    previous_value: Optional[float] = None
    direction: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type,
            "indicator": self.indicator,
            "indicator_name": self.indicator_name,
            "message": self.message,
            "timestamp": self.timestamp,
            "new_zone": self.new_zone.value,
            "current_value": self.current_value,
            "previous_zone": self.previous_zone.value if self.previous_zone else None,
            "previous_value": self.previous_value,
            "direction": self.direction,
        }
