"""
REGIME WATCH - Zone Evaluation

Converts indicator values into discrete zones using configured
threshold bands. No async. No side effects. Never raises.
"""

from __future__ import annotations

import dataclasses
from typing import Optional

from regime_watch.types import (
    IndicatorThresholds,
    LadderThresholds,
    ThresholdBand,
    Zone,
    ZoneResult,
)

# Evaluation order. First matching band wins, regardless of config order.
ZONE_PRIORITY = ("critical", "danger", "warning", "normal")

ZONE_COLORS = {
    Zone.NORMAL: "#10b981",
    Zone.WARNING: "#f59e0b",
    Zone.DANGER: "#ef4444",
    Zone.CRITICAL: "#7c2d12",
    Zone.UNKNOWN: "#6b7280",
}

ZONE_DESCRIPTIONS = {
    Zone.NORMAL: "Within normal range",
    Zone.WARNING: "Elevated risk - monitor closely",
    Zone.DANGER: "High risk - significant concern",
    Zone.CRITICAL: "Critical - immediate attention required",
    Zone.UNKNOWN: "Data unavailable",
}

ZONE_SEVERITY = {
    Zone.UNKNOWN: -1,
    Zone.NORMAL: 0,
    Zone.WARNING: 1,
    Zone.DANGER: 2,
    Zone.CRITICAL: 3,
}


def zone_result(zone: Zone) -> ZoneResult:
    """Canonical color and description for a zone."""
    return ZoneResult(zone=zone, color=ZONE_COLORS[zone], description=ZONE_DESCRIPTIONS[zone])


def zone_severity(zone: Zone) -> int:
    return ZONE_SEVERITY[zone]


def in_band(value: float, band: ThresholdBand) -> bool:
    """Band membership: [min, max), open-ended where a bound is missing."""
    if band.min is not None and band.max is not None:
        return band.min <= value < band.max
    if band.min is not None:
        return value >= band.min
    if band.max is not None:
        return value < band.max
    return False


def evaluate_zone(value: Optional[float], thresholds: IndicatorThresholds) -> ZoneResult:
    """
    Classify a value against min/max bands.

    Zones are checked critical -> danger -> warning -> normal and the
    first match wins. A gap in the configuration falls back to NORMAL.

    Args:
        value: Indicator value in native units, or None.
        thresholds: One band per zone name.

    Returns:
        ZoneResult. UNKNOWN for None.
    """
    if value is None:
        return zone_result(Zone.UNKNOWN)

    for name in ZONE_PRIORITY:
        band = thresholds.band(name)
        if band is None:
            continue
        if in_band(value, band):
            return zone_result(Zone[name.upper()])

    return zone_result(Zone.NORMAL)


def evaluate_ladder(value: Optional[float], ladder: LadderThresholds) -> ZoneResult:
    """Classify a value on a flat ascending ladder (secondary indicators)."""
    if value is None:
        return zone_result(Zone.UNKNOWN)
    if value >= ladder.critical:
        return zone_result(Zone.CRITICAL)
    if value >= ladder.danger:
        return zone_result(Zone.DANGER)
    if value >= ladder.warning:
        return zone_result(Zone.WARNING)
    return zone_result(Zone.NORMAL)


def merge_thresholds(
    base: IndicatorThresholds,
    override: Optional[dict[str, ThresholdBand]],
) -> IndicatorThresholds:
    """Per-zone replacement of bands. Returns a new object, base is untouched."""
    if not override:
        return base
    return dataclasses.replace(base, **override)
