"""Tests for the crisis-stage classifier."""

import dataclasses

import pytest

from regime_watch.classifier.engine import assess_stage, pre_crisis_concerns, stage_name
from regime_watch.config import Stage1Config, StageConfig
from regime_watch.types import IndicatorSnapshot


class TestAssessStage:
    """Test the stage truth table."""

    @pytest.fixture
    def cfg(self):
        return StageConfig()

    def test_empty_snapshot_is_low_risk(self, cfg):
        result = assess_stage(IndicatorSnapshot(), cfg)
        assert result.stage == 0
        assert result.stage_name == "Pre-Crisis (Low Risk)"
        assert result.confidence == 50
        assert result.triggers == []
        assert result.all_triggered_stages == []

    def test_two_stage1_triggers_do_not_fire(self, cfg):
        result = assess_stage(IndicatorSnapshot(vix=45, hy_spread=750), cfg)
        assert result.stage == 0

    def test_stage1_fires_at_three(self, cfg):
        snap = IndicatorSnapshot(vix=45, hy_spread=750, auction_tail=4.5)
        result = assess_stage(snap, cfg)
        assert result.stage == 1
        assert result.stage_name == "Stage 1 - Traditional Financial Crisis"
        assert result.triggers == ["VIX > 40", "HY Spread > 700bps", "Auction tail > 4bps"]
        assert result.confidence == 80

    def test_stage1_all_five(self, cfg):
        snap = IndicatorSnapshot(vix=45, hy_spread=750, auction_tail=4.5, hedging_spread=-60, dollar_change=-1)
        result = assess_stage(snap, cfg)
        assert result.confidence == 100
        assert "Japanese hedging spread < -50bps" in result.triggers
        assert "Dollar weakening during equity stress" in result.triggers

    def test_dollar_stress_needs_vix(self, cfg):
        snap = IndicatorSnapshot(vix=20, hy_spread=750, auction_tail=4.5, dollar_change=-1)
        assert assess_stage(snap, cfg).stage == 0

    def test_stage2(self, cfg):
        snap = IndicatorSnapshot(fed_balance_sheet_change=2500, inflation_breakeven=4.5)
        result = assess_stage(snap, cfg)
        assert result.stage == 2
        assert result.triggers == ["Fed balance sheet expansion > $2T", "Inflation breakevens > 4%"]
        assert result.confidence == 80

    def test_stage4_alone(self, cfg):
        result = assess_stage(IndicatorSnapshot(cpi_annualized=12), cfg)
        assert result.stage == 4
        assert result.triggers == ["CPI > 10% annualized"]
        assert result.confidence == 70

    def test_highest_stage_wins(self, cfg):
        snap = IndicatorSnapshot(
            vix=45,
            hy_spread=750,
            auction_tail=4.5,
            foreign_holdings_change=-12,
            gold_change=55,
        )
        result = assess_stage(snap, cfg)
        assert result.stage == 3
        assert [s.stage for s in result.all_triggered_stages] == [1, 3]
        stage1, stage3 = result.all_triggered_stages
        assert "VIX > 40" in stage1.triggers
        assert stage3.triggers == ["Gold acceleration > 50%", "Foreign selling acceleration"]
        assert result.triggers == stage3.triggers
        assert result.confidence == stage3.confidence == 80

    def test_gold_55_also_fires_stage2_trigger(self, cfg):
        snap = IndicatorSnapshot(gold_change=55, dollar_change=-25)
        result = assess_stage(snap, cfg)
        assert [s.stage for s in result.all_triggered_stages] == [2, 3]
        assert result.stage == 3

    def test_boundaries_are_strict(self, cfg):
        snap = IndicatorSnapshot(vix=40, hy_spread=700, auction_tail=4, hedging_spread=-50)
        assert assess_stage(snap, cfg).stage == 0

    def test_deterministic(self, cfg):
        snap = IndicatorSnapshot(vix=45, hy_spread=750, auction_tail=4.5)
        assert assess_stage(snap, cfg) == assess_stage(snap, cfg)

    def test_thresholds_come_from_config(self):
        cfg = dataclasses.replace(StageConfig(), stage1=Stage1Config(vix_extreme=30, triggers_required=1))
        result = assess_stage(IndicatorSnapshot(vix=35), cfg)
        assert result.stage == 1
        assert result.triggers == ["VIX > 30"]


class TestPreCrisis:
    @pytest.fixture
    def cfg(self):
        return StageConfig()

    def test_moderate(self, cfg):
        result = assess_stage(IndicatorSnapshot(hedging_spread=-10), cfg)
        assert result.stage_name == "Pre-Crisis (Moderate Risk)"
        assert result.confidence == 58
        assert result.triggers == ["Japanese hedging spread negative"]

    def test_elevated_with_all_concerns(self, cfg):
        snap = IndicatorSnapshot(
            hedging_spread=-10,
            auction_tail=2.5,
            interest_ratio=0.2021,
            basis_swap=-10,
            gold_treasury_roc=0.15,
        )
        result = assess_stage(snap, cfg)
        assert result.stage == 0
        assert result.stage_name == "Pre-Crisis (Elevated Risk)"
        assert result.confidence == 90
        assert "Interest expense ratio at 20.2%" in result.triggers
        assert "Cross-currency basis narrowing" in result.triggers

    @pytest.mark.parametrize("field", [f.name for f in dataclasses.fields(IndicatorSnapshot)])
    def test_confidence_range_with_nulls(self, cfg, field):
        snap = IndicatorSnapshot(
            hedging_spread=-10,
            auction_tail=2.5,
            interest_ratio=0.2,
            basis_swap=-10,
            gold_treasury_roc=0.15,
        )
        snap = dataclasses.replace(snap, **{field: None})
        result = assess_stage(snap, cfg)
        assert result.stage == 0
        assert 50 <= result.confidence <= 90

    def test_concerns_helper(self, cfg):
        assert pre_crisis_concerns(IndicatorSnapshot(), cfg) == []


class TestStageName:
    def test_names(self):
        assert stage_name(2) == "Stage 2 - Intervention Phase"
        assert stage_name(3) == "Stage 3 - Credibility Crisis"
        assert stage_name(4) == "Stage 4 - Regime Transition"
        assert stage_name(9) == "Unknown"
