"""
REGIME WATCH - Formatting & Explanation

Display formatting for indicator values and human-readable report lines.
Statements are factual readings of zones and triggers. No predictions.
"""

from __future__ import annotations

from typing import Optional

from regime_watch.types import IndicatorConfig, IndicatorReport, Zone

NA = "N/A"


def format_number(value: Optional[float], decimals: int = 2) -> str:
    if value is None:
        return NA
    return f"{value:.{decimals}f}"


def format_bps(value: Optional[float], decimals: int = 0) -> str:
    """Signed bps, e.g. '+12 bps', '-48 bps'."""
    if value is None:
        return NA
    return f"{value:+.{decimals}f} bps"


def format_percent(value: Optional[float], decimals: int = 1, is_fraction: bool = True) -> str:
    """0.2021 -> '20.2%'. Pass is_fraction=False for values already in percent."""
    if value is None:
        return NA
    pct = value * 100 if is_fraction else value
    return f"{pct:.{decimals}f}%"


def format_currency(value: Optional[float], unit: str = "B") -> str:
    """Dollar amount in billions ('B') or trillions ('T') from a value in billions."""
    if value is None:
        return NA
    if unit == "T":
        return f"${value / 1000:.2f}T"
    return f"${value:,.0f}B"


def format_indicator_value(value: Optional[float], config: IndicatorConfig, decimals: int = 2) -> str:
    """Apply the display multiplier and unit from the indicator config."""
    if value is None:
        return NA
    shown = value * config.display_multiplier if config.display_multiplier else value
    unit = config.unit
    if unit == "bps":
        return f"{shown:.{decimals}f} bps"
    return f"{shown:.{decimals}f}{unit}"


def gauge_position(value: Optional[float], lo: float, hi: float) -> float:
    """Position of value on a [lo, hi] gauge as 0-100. Midpoint when unknown."""
    if value is None or hi == lo:
        return 50.0
    position = (value - lo) / (hi - lo) * 100
    return max(0.0, min(100.0, position))


def describe_report(report: IndicatorReport) -> list[str]:
    """
    Human-readable lines for a report.

    Args:
        report: Output of IndicatorPipeline.process().

    Returns:
        Stage headline, then one line per non-normal indicator and trigger.
    """
    assessment = report.assessment
    lines = [f"{assessment.stage_name} (confidence {assessment.confidence}%)"]

    for reading in report.indicators.values():
        zone = reading.zone.zone
        if zone in (Zone.NORMAL, Zone.UNKNOWN):
            continue
        lines.append(
            f"{reading.config.name} in {zone.value}: "
            f"{format_indicator_value(reading.value, reading.config)}"
        )

    for trigger in assessment.triggers:
        lines.append(f"Trigger: {trigger}")

    unknown = [r.config.short_name for r in report.indicators.values() if r.zone.zone == Zone.UNKNOWN]
    if unknown:
        lines.append(f"Data unavailable: {', '.join(unknown)}")

    if len(lines) == 1:
        lines.append("All indicators within normal ranges")
    return lines
