"""
REGIME WATCH - Deterministic Crisis-Stage Classifier

Rules:
1. Stages 1-4 are checked independently, each against its own triggers.
2. A stage fires when its trigger count reaches the configured minimum.
3. The highest-numbered firing stage wins, with its own triggers and confidence.
4. Nothing fired -> Stage 0 (Pre-Crisis), graded by pre-crisis concerns.

A None input fails its condition. No hysteresis. Each call is independent.
"""

from __future__ import annotations

from typing import Optional

from regime_watch.config import StageConfig
from regime_watch.types import IndicatorSnapshot, StageAssessment, TriggeredStage

STAGE_NAMES = {
    0: "Pre-Crisis",
    1: "Stage 1 - Traditional Financial Crisis",
    2: "Stage 2 - Intervention Phase",
    3: "Stage 3 - Credibility Crisis",
    4: "Stage 4 - Regime Transition",
}


def stage_name(stage: int) -> str:
    return STAGE_NAMES.get(stage, "Unknown")


def _above(value: Optional[float], limit: float) -> bool:
    return value is not None and value > limit


def _below(value: Optional[float], limit: float) -> bool:
    return value is not None and value < limit


def _fmt(x: float) -> str:
    return f"{x:g}"


def _stage1_triggers(s: IndicatorSnapshot, config: StageConfig) -> list[str]:
    c = config.stage1
    triggers = []
    if _above(s.vix, c.vix_extreme):
        triggers.append(f"VIX > {_fmt(c.vix_extreme)}")
    if _above(s.hy_spread, c.hy_spread_bps):
        triggers.append(f"HY Spread > {_fmt(c.hy_spread_bps)}bps")
    if _above(s.auction_tail, c.auction_tail_bps):
        triggers.append(f"Auction tail > {_fmt(c.auction_tail_bps)}bps")
    if _below(s.hedging_spread, c.hedging_spread_bps):
        triggers.append(f"Japanese hedging spread < {_fmt(c.hedging_spread_bps)}bps")
    if _below(s.dollar_change, 0) and _above(s.vix, c.dollar_stress_vix):
        triggers.append("Dollar weakening during equity stress")
    return triggers


def _stage2_triggers(s: IndicatorSnapshot, config: StageConfig) -> list[str]:
    c = config.stage2
    triggers = []
    if _above(s.fed_balance_sheet_change, c.fed_balance_sheet_bn):
        triggers.append(f"Fed balance sheet expansion > ${_fmt(c.fed_balance_sheet_bn / 1000)}T")
    if _above(s.inflation_breakeven, c.inflation_breakeven):
        triggers.append(f"Inflation breakevens > {_fmt(c.inflation_breakeven)}%")
    if _below(s.dollar_change, c.dollar_decline_pct):
        triggers.append(f"Dollar down > {_fmt(abs(c.dollar_decline_pct))}%")
    if _above(s.gold_change, c.gold_rise_pct):
        triggers.append(f"Gold up > {_fmt(c.gold_rise_pct)}%")
    return triggers


def _stage3_triggers(s: IndicatorSnapshot, config: StageConfig) -> list[str]:
    c = config.stage3
    triggers = []
    if _below(s.dollar_change, c.dollar_decline_pct):
        triggers.append(f"Sustained dollar weakness > {_fmt(abs(c.dollar_decline_pct))}%")
    if _above(s.gold_change, c.gold_rise_pct):
        triggers.append(f"Gold acceleration > {_fmt(c.gold_rise_pct)}%")
    if _below(s.foreign_holdings_change, c.foreign_selling_pct):
        triggers.append("Foreign selling acceleration")
    return triggers


def _stage4_triggers(s: IndicatorSnapshot, config: StageConfig) -> list[str]:
    c = config.stage4
    triggers = []
    if _above(s.cpi_annualized, c.cpi_annualized_pct):
        triggers.append(f"CPI > {_fmt(c.cpi_annualized_pct)}% annualized")
    return triggers


def pre_crisis_concerns(s: IndicatorSnapshot, config: StageConfig) -> list[str]:
    """Stage 0 concern list for a snapshot."""
    c = config.pre_crisis
    concerns = []
    if _below(s.hedging_spread, c.hedging_spread_bps):
        concerns.append("Japanese hedging spread negative")
    if _above(s.auction_tail, c.auction_tail_bps):
        concerns.append("Auction tails trending higher")
    if _above(s.interest_ratio, c.interest_ratio):
        concerns.append(f"Interest expense ratio at {s.interest_ratio * 100:.1f}%")
    if _above(s.basis_swap, c.basis_swap_bps):
        concerns.append("Cross-currency basis narrowing")
    if _above(s.gold_treasury_roc, c.gold_roc):
        concerns.append("Gold/Treasury ratio accelerating")
    return concerns


def assess_stage(snapshot: IndicatorSnapshot, config: StageConfig) -> StageAssessment:
    """
    Deterministic crisis-stage assessment.

    Args:
        snapshot: Current indicator values. Any field may be None.
        config: Stage trigger configuration.

    Returns:
        StageAssessment for stage 0-4.
    """
    checks = (
        (1, _stage1_triggers(snapshot, config), config.stage1),
        (2, _stage2_triggers(snapshot, config), config.stage2),
        (3, _stage3_triggers(snapshot, config), config.stage3),
        (4, _stage4_triggers(snapshot, config), config.stage4),
    )

    fired = [
        TriggeredStage(
            stage=stage,
            triggers=triggers,
            confidence=min(100, rule.confidence_base + rule.confidence_step * len(triggers)),
        )
        for stage, triggers, rule in checks
        if len(triggers) >= rule.triggers_required
    ]

    # Highest firing stage wins
    if fired:
        top = max(fired, key=lambda t: t.stage)
        return StageAssessment(
            stage=top.stage,
            stage_name=stage_name(top.stage),
            confidence=top.confidence,
            triggers=list(top.triggers),
            all_triggered_stages=fired,
        )

    # Otherwise Pre-Crisis, graded by concern count
    pre = config.pre_crisis
    concerns = pre_crisis_concerns(snapshot, config)
    if len(concerns) >= pre.elevated_concerns:
        risk = "Elevated Risk"
    elif concerns:
        risk = "Moderate Risk"
    else:
        risk = "Low Risk"

    return StageAssessment(
        stage=0,
        stage_name=f"{stage_name(0)} ({risk})",
        confidence=pre.confidence_base + pre.confidence_step * len(concerns),
        triggers=concerns,
        all_triggered_stages=[],
    )
