"""
REGIME WATCH - Configuration & Thresholds

Single source of truth for all numerical thresholds.
All values are named, documented, and centralized. Any subset can be
overridden from JSON data via load_config() without code changes.
"""

from __future__ import annotations

import dataclasses
import json
import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from regime_watch.types import (
    CalibrationParams,
    IndicatorConfig,
    IndicatorThresholds,
    LadderThresholds,
    PolicyRates,
    ThresholdBand,
)

logger = logging.getLogger(__name__)

ZONE_NAMES = ("normal", "warning", "danger", "critical")


class ConfigError(ValueError):
    """Invalid configuration or administrative request. Nothing was changed."""


# --- Core indicators ---

JAPANESE_HEDGING_SPREAD = IndicatorConfig(
    key="japanese_hedging_spread",
    name="Japanese Hedging Cost Spread",
    short_name="JP Hedge Spread",
    unit="bps",
    description=(
        "US_10Y - JGB_10Y - FX_HEDGE_COST. Negative values indicate Japanese "
        "institutions have incentive to exit Treasuries."
    ),
    thresholds=IndicatorThresholds(
        normal=ThresholdBand(min=0),
        warning=ThresholdBand(min=-50, max=0),
        danger=ThresholdBand(min=-100, max=-50),
        critical=ThresholdBand(max=-100),
    ),
    inverted=True,
    gauge_min=-150,
    gauge_max=100,
    critical_direction="below",
)

CROSS_CURRENCY_BASIS = IndicatorConfig(
    key="cross_currency_basis",
    name="Cross-Currency Basis (EUR/USD 5Y)",
    short_name="EUR/USD Basis",
    unit="bps",
    description="Narrowing or positive basis indicates reduced global demand for dollar funding.",
    thresholds=IndicatorThresholds(
        normal=ThresholdBand(max=-15),
        warning=ThresholdBand(min=-15, max=-5),
        danger=ThresholdBand(min=-5, max=5),
        critical=ThresholdBand(min=5),
    ),
    gauge_min=-50,
    gauge_max=20,
)

AUCTION_TAIL = IndicatorConfig(
    key="auction_tail",
    name="Treasury Auction Tail (20Y/30Y Avg)",
    short_name="Auction Tail",
    unit="bps",
    description=(
        "Difference between auction high yield and when-issued yield. "
        "Consistent tails > 3bps indicate insufficient demand."
    ),
    thresholds=IndicatorThresholds(
        normal=ThresholdBand(max=2),
        warning=ThresholdBand(min=2, max=3),
        danger=ThresholdBand(min=3, max=5),
        critical=ThresholdBand(min=5),
    ),
    gauge_min=-1,
    gauge_max=8,
)

GOLD_TREASURY_ROC = IndicatorConfig(
    key="gold_treasury_roc",
    name="Gold/Treasury Ratio (12mo Change)",
    short_name="Gold/Treasury RoC",
    unit="%",
    description=(
        "Annual rate of change in Gold/TLT ratio. Acceleration indicates "
        "substitution from Treasuries to gold."
    ),
    thresholds=IndicatorThresholds(
        normal=ThresholdBand(max=0.10),
        warning=ThresholdBand(min=0.10, max=0.20),
        danger=ThresholdBand(min=0.20, max=0.35),
        critical=ThresholdBand(min=0.35),
    ),
    gauge_min=-0.10,
    gauge_max=0.50,
    display_multiplier=100,
)

INTEREST_EXPENSE_RATIO = IndicatorConfig(
    key="interest_expense_ratio",
    name="Federal Interest Expense Ratio",
    short_name="Interest/Receipts",
    unit="%",
    description=(
        "TTM interest expense as percentage of TTM receipts. "
        "Above 25% indicates unsustainable arithmetic."
    ),
    thresholds=IndicatorThresholds(
        normal=ThresholdBand(max=0.18),
        warning=ThresholdBand(min=0.18, max=0.25),
        danger=ThresholdBand(min=0.25, max=0.35),
        critical=ThresholdBand(min=0.35),
    ),
    gauge_min=0.05,
    gauge_max=0.40,
    display_multiplier=100,
)

CORE_INDICATORS = (
    JAPANESE_HEDGING_SPREAD,
    CROSS_CURRENCY_BASIS,
    AUCTION_TAIL,
    GOLD_TREASURY_ROC,
    INTEREST_EXPENSE_RATIO,
)


def _default_indicators() -> dict[str, IndicatorConfig]:
    return {cfg.key: cfg for cfg in CORE_INDICATORS}


# --- Secondary indicators (flat ladders) ---


@dataclass(frozen=True)
class SecondaryConfig:
    """Flat ascending ladders for secondary market indicators."""

    vix: LadderThresholds = LadderThresholds(warning=25, danger=40, critical=60)
    hy_spread: LadderThresholds = LadderThresholds(warning=400, danger=600, critical=800)  # bps
    sofr_treasury_spread: LadderThresholds = LadderThresholds(warning=20, danger=40, critical=75)


# --- Stage assessment triggers ---


@dataclass(frozen=True)
class Stage1Config:
    """Traditional financial crisis."""

    vix_extreme: float = 40.0
    hy_spread_bps: float = 700.0
    auction_tail_bps: float = 4.0
    hedging_spread_bps: float = -50.0
    dollar_stress_vix: float = 25.0  # dollar weakening while VIX above this
    triggers_required: int = 3
    confidence_base: int = 50
    confidence_step: int = 10


@dataclass(frozen=True)
class Stage2Config:
    """Intervention phase."""

    fed_balance_sheet_bn: float = 2000.0  # $2T expansion
    inflation_breakeven: float = 4.0
    dollar_decline_pct: float = -15.0
    gold_rise_pct: float = 30.0
    triggers_required: int = 2
    confidence_base: int = 50
    confidence_step: int = 15


@dataclass(frozen=True)
class Stage3Config:
    """Credibility crisis."""

    dollar_decline_pct: float = -20.0
    gold_rise_pct: float = 50.0
    foreign_selling_pct: float = -10.0
    triggers_required: int = 2
    confidence_base: int = 50
    confidence_step: int = 15


@dataclass(frozen=True)
class Stage4Config:
    """Regime transition."""

    cpi_annualized_pct: float = 10.0
    triggers_required: int = 1
    confidence_base: int = 40
    confidence_step: int = 30


@dataclass(frozen=True)
class PreCrisisConfig:
    """Stage 0 concern conditions."""

    hedging_spread_bps: float = 0.0  # below this is a concern
    auction_tail_bps: float = 2.0
    interest_ratio: float = 0.18
    basis_swap_bps: float = -15.0  # above this means basis narrowing
    gold_roc: float = 0.10
    elevated_concerns: int = 3
    confidence_base: int = 50
    confidence_step: int = 8


@dataclass(frozen=True)
class StageConfig:
    stage1: Stage1Config = Stage1Config()
    stage2: Stage2Config = Stage2Config()
    stage3: Stage3Config = Stage3Config()
    stage4: Stage4Config = Stage4Config()
    pre_crisis: PreCrisisConfig = PreCrisisConfig()


# --- CIP basis proxy ---


def _default_calibration() -> dict[str, CalibrationParams]:
    # EUR/USD 5Y basis typically runs -10 to -30 bps in normal conditions,
    # JPY/USD 5Y -40 to -80 bps due to life insurer hedging demand.
    return {
        "eur": CalibrationParams(base_offset=-15, rate_sensitivity=8),
        "jpy": CalibrationParams(base_offset=-25, rate_sensitivity=12, structural_premium=-15),
    }


@dataclass(frozen=True)
class CipConfig:
    """Starting state of the CIP basis service."""

    policy_rates: PolicyRates = PolicyRates(ecb=3.00, boj=0.25)
    calibration: dict[str, CalibrationParams] = field(default_factory=_default_calibration)
    tenor: str = "5Y"
    history_limit: int = 500
    cache_ttl_seconds: int = 4 * 60 * 60


@dataclass(frozen=True)
class BreakevenConfig:
    thirty_year_premium: float = 0.30  # 30Y typically 20-50bps over 10Y
    slope_warning: float = 0.50  # 30Y - 5Y


@dataclass(frozen=True)
class AlertConfig:
    critical_repeat_seconds: int = 24 * 60 * 60
    max_log_size: int = 1000


@dataclass(frozen=True)
class IngestConfig:
    lookback_calendar_days: int = 800  # 12-month changes need > 1 year of history
    auction_lookback_months: int = 3
    request_timeout_seconds: float = 30.0
    fred_base_url: str = "https://api.stlouisfed.org/fred/series/observations"
    fiscal_base_url: str = "https://api.fiscaldata.treasury.gov/services/api/fiscal_service"
    quote_base_url: str = "https://query1.finance.yahoo.com/v8/finance/chart"
    # Monthly Treasury Statement line items (classification_desc)
    mts_interest_line: str = "Interest on Treasury Debt Securities (Gross)"
    mts_receipts_line: str = "Total -- Receipts"


@dataclass(frozen=True)
class MonitorConfig:
    """Master configuration for REGIME WATCH."""

    indicators: dict[str, IndicatorConfig] = field(default_factory=_default_indicators)
    secondary: SecondaryConfig = SecondaryConfig()
    stage: StageConfig = StageConfig()
    cip: CipConfig = field(default_factory=CipConfig)
    breakevens: BreakevenConfig = BreakevenConfig()
    alerts: AlertConfig = AlertConfig()
    ingest: IngestConfig = IngestConfig()


# --- Loading configuration as data ---


def _number(value: Any, where: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"{where}: expected a number, got {value!r}")
    if not math.isfinite(value):
        raise ConfigError(f"{where}: expected a finite number, got {value!r}")
    return value


def parse_band(raw: Any, where: str) -> ThresholdBand:
    """Build a ThresholdBand from {"min": .., "max": ..}. At least one bound required."""
    if isinstance(raw, ThresholdBand):
        raw = raw.to_dict()
    if not isinstance(raw, dict):
        raise ConfigError(f"{where}: band must be an object with min and/or max")
    unknown = set(raw) - {"min", "max"}
    if unknown:
        raise ConfigError(f"{where}: unknown band keys {sorted(unknown)}")
    lo = raw.get("min")
    hi = raw.get("max")
    if lo is None and hi is None:
        raise ConfigError(f"{where}: band needs min and/or max")
    if lo is not None:
        _number(lo, f"{where}.min")
    if hi is not None:
        _number(hi, f"{where}.max")
    if lo is not None and hi is not None and lo >= hi:
        raise ConfigError(f"{where}: min ({lo}) must be below max ({hi})")
    return ThresholdBand(min=lo, max=hi)


def parse_thresholds(raw: Any, where: str) -> IndicatorThresholds:
    if not isinstance(raw, dict):
        raise ConfigError(f"{where}: thresholds must be an object keyed by zone")
    unknown = set(raw) - set(ZONE_NAMES)
    if unknown:
        raise ConfigError(f"{where}: unknown zones {sorted(unknown)}")
    return IndicatorThresholds(
        **{name: parse_band(raw[name], f"{where}.{name}") for name in raw}
    )


def parse_ladder(raw: Any, where: str, base: Optional[LadderThresholds] = None) -> LadderThresholds:
    if not isinstance(raw, dict):
        raise ConfigError(f"{where}: ladder must be an object")
    merged = base.to_dict() if base is not None else {}
    merged.update(raw)
    missing = {"warning", "danger", "critical"} - set(merged)
    if missing:
        raise ConfigError(f"{where}: missing ladder steps {sorted(missing)}")
    unknown = set(merged) - {"warning", "danger", "critical"}
    if unknown:
        raise ConfigError(f"{where}: unknown ladder keys {sorted(unknown)}")
    warning = _number(merged["warning"], f"{where}.warning")
    danger = _number(merged["danger"], f"{where}.danger")
    critical = _number(merged["critical"], f"{where}.critical")
    if not warning <= danger <= critical:
        raise ConfigError(f"{where}: ladder must ascend warning <= danger <= critical")
    return LadderThresholds(warning=warning, danger=danger, critical=critical)


def parse_calibration(raw: Any, where: str, base: Optional[CalibrationParams] = None) -> CalibrationParams:
    if not isinstance(raw, dict):
        raise ConfigError(f"{where}: calibration must be an object")
    unknown = set(raw) - {"base_offset", "rate_sensitivity", "structural_premium"}
    if unknown:
        raise ConfigError(f"{where}: unknown calibration keys {sorted(unknown)}")
    values = base.to_dict() if base is not None else {}
    values.update(raw)
    if "base_offset" not in values or "rate_sensitivity" not in values:
        raise ConfigError(f"{where}: base_offset and rate_sensitivity are required")
    for k, v in values.items():
        if v is not None:
            _number(v, f"{where}.{k}")
    return CalibrationParams(**values)


def _replace_section(section: Any, raw: Any, where: str) -> Any:
    """dataclasses.replace() with unknown-key and type checks."""
    if not isinstance(raw, dict):
        raise ConfigError(f"{where}: expected an object")
    names = {f.name for f in dataclasses.fields(section)}
    unknown = set(raw) - names
    if unknown:
        raise ConfigError(f"{where}: unknown keys {sorted(unknown)}")
    for k, v in raw.items():
        current = getattr(section, k)
        if isinstance(current, (int, float)) and not isinstance(current, bool):
            _number(v, f"{where}.{k}")
        elif isinstance(current, str) and not isinstance(v, str):
            raise ConfigError(f"{where}.{k}: expected a string, got {v!r}")
    return dataclasses.replace(section, **raw)


def _indicator_from_dict(base: IndicatorConfig, raw: Any, where: str) -> IndicatorConfig:
    if not isinstance(raw, dict):
        raise ConfigError(f"{where}: expected an object")
    raw = dict(raw)
    thresholds = base.thresholds
    if "thresholds" in raw:
        thresholds = parse_thresholds(raw.pop("thresholds"), f"{where}.thresholds")
    raw.pop("key", None)
    updated = _replace_section(base, raw, where) if raw else base
    return dataclasses.replace(updated, thresholds=thresholds)


def _section(data: dict, name: str, where: Optional[str] = None) -> dict:
    raw = data.get(name, {})
    if not isinstance(raw, dict):
        raise ConfigError(f"{where or name}: expected an object, got {type(raw).__name__}")
    return raw


def config_from_dict(data: dict, base: Optional[MonitorConfig] = None) -> MonitorConfig:
    """
    Overlay configuration data onto defaults.

    Args:
        data: Parsed JSON object. Any subset of sections may be present.
        base: Starting configuration (default: MonitorConfig()).

    Returns:
        New MonitorConfig. Raises ConfigError on any malformed entry.
    """
    cfg = base or MonitorConfig()
    if not isinstance(data, dict):
        raise ConfigError("configuration root must be an object")

    sections = {"indicators", "secondary", "stage", "cip", "breakevens", "alerts", "ingest"}
    unknown = set(data) - sections
    if unknown:
        raise ConfigError(f"unknown configuration sections {sorted(unknown)}")

    indicators = dict(cfg.indicators)
    for key, raw in _section(data, "indicators").items():
        if key not in indicators:
            raise ConfigError(f"indicators: unknown indicator '{key}'")
        indicators[key] = _indicator_from_dict(indicators[key], raw, f"indicators.{key}")

    secondary = cfg.secondary
    for key, raw in _section(data, "secondary").items():
        if not hasattr(secondary, key):
            raise ConfigError(f"secondary: unknown indicator '{key}'")
        ladder = parse_ladder(raw, f"secondary.{key}", getattr(secondary, key))
        secondary = dataclasses.replace(secondary, **{key: ladder})

    stage = cfg.stage
    for key, raw in _section(data, "stage").items():
        if not hasattr(stage, key):
            raise ConfigError(f"stage: unknown section '{key}'")
        stage = dataclasses.replace(stage, **{key: _replace_section(getattr(stage, key), raw, f"stage.{key}")})

    cip = cfg.cip
    raw_cip = dict(_section(data, "cip"))
    if "policy_rates" in raw_cip:
        rates = _replace_section(cip.policy_rates, raw_cip.pop("policy_rates"), "cip.policy_rates")
        cip = dataclasses.replace(cip, policy_rates=rates)
    if "calibration" in raw_cip:
        calibration = dict(cip.calibration)
        for currency, raw in _section(raw_cip, "calibration", "cip.calibration").items():
            currency = currency.lower()
            calibration[currency] = parse_calibration(
                raw, f"cip.calibration.{currency}", calibration.get(currency)
            )
        raw_cip.pop("calibration")
        cip = dataclasses.replace(cip, calibration=calibration)
    if raw_cip:
        cip = _replace_section(cip, raw_cip, "cip")

    return MonitorConfig(
        indicators=indicators,
        secondary=secondary,
        stage=stage,
        cip=cip,
        breakevens=_replace_section(cfg.breakevens, data.get("breakevens", {}), "breakevens"),
        alerts=_replace_section(cfg.alerts, data.get("alerts", {}), "alerts"),
        ingest=_replace_section(cfg.ingest, data.get("ingest", {}), "ingest"),
    )


def load_config(path: Path | str) -> MonitorConfig:
    """Load configuration overrides from a JSON file."""
    path = Path(path)
    try:
        data = json.loads(path.read_text())
    except json.JSONDecodeError as exc:
        raise ConfigError(f"{path}: invalid JSON ({exc})") from exc
    cfg = config_from_dict(data)
    logger.info(f"Loaded configuration from {path}")
    return cfg
