"""Tests for the indicator pipeline (synchronous processing and a stubbed fetcher)."""

import asyncio
import dataclasses
from datetime import date

import pytest

from regime_watch.alerts.monitor import CRITICAL_LEVEL
from regime_watch.cip.service import CipBasisService
from regime_watch.config import ConfigError
from regime_watch.pipeline.indicators import IndicatorPipeline
from regime_watch.types import BasisMethod, RawSeriesBundle, TimePoint, Zone


class StubFetcher:
    """Returns a fixed bundle instead of calling any API."""

    def __init__(self, raw: RawSeriesBundle) -> None:
        self.raw = raw
        self.requested: list = []

    async def fetch(self, as_of_date=None) -> RawSeriesBundle:
        self.requested.append(as_of_date)
        return self.raw


@pytest.fixture
def pipeline(config):
    return IndicatorPipeline(config)


class TestProcess:
    """Test the synchronous process() method with synthetic data."""

    def test_core_indicators(self, pipeline, sample_raw):
        report = pipeline.process(sample_raw)
        readings = report.indicators
        assert list(readings) == [
            "japanese_hedging_spread",
            "cross_currency_basis",
            "auction_tail",
            "gold_treasury_roc",
            "interest_expense_ratio",
        ]

        spread = readings["japanese_hedging_spread"]
        assert spread.value == pytest.approx(-196.0)
        assert spread.zone.zone == Zone.CRITICAL
        assert spread.extras["fx_hedge_cost"] == pytest.approx(5.16)
        assert spread.extras["method"] == BasisMethod.PROXY.value

        basis = readings["cross_currency_basis"]
        assert basis.value == pytest.approx(-27.0)
        assert basis.zone.zone == Zone.NORMAL
        assert basis.note

        tail = readings["auction_tail"]
        assert tail.value == pytest.approx(1.75)
        assert tail.zone.zone == Zone.NORMAL
        assert tail.as_of == date(2025, 12, 11)
        assert tail.extras["auction_count"] == 2

        gold = readings["gold_treasury_roc"]
        assert gold.value == pytest.approx(0.15)
        assert gold.zone.zone == Zone.WARNING

        ratio = readings["interest_expense_ratio"]
        assert ratio.value == pytest.approx(950 / 4700)
        assert ratio.zone.zone == Zone.WARNING
        assert ratio.extras["ttm_interest_expense"] == pytest.approx(950)

    def test_snapshot(self, pipeline, sample_raw):
        snap = pipeline.process(sample_raw).snapshot
        assert snap.hedging_spread == pytest.approx(-196.0)
        assert snap.basis_swap == pytest.approx(-27.0)
        assert snap.vix == 18.0
        assert snap.hy_spread == pytest.approx(350.0)
        assert snap.dollar_change == pytest.approx(-4.1667, abs=1e-4)
        assert snap.fed_balance_sheet_change == pytest.approx(-200.0)
        assert snap.inflation_breakeven == 2.40
        assert snap.gold_change == pytest.approx(15.0)
        assert snap.foreign_holdings_change == pytest.approx(1.25)
        assert snap.cpi_annualized == pytest.approx(3.0)

    def test_gold_change_follows_gold_treasury_ratio(self, pipeline, sample_raw):
        # gold +15% while TLT falls 8%: ratio 20 -> 25
        tlt = [TimePoint(p.date, 92.0 if i == 0 else 100.0) for i, p in enumerate(sample_raw.tlt_price)]
        raw = dataclasses.replace(sample_raw, tlt_price=tlt)
        snap = pipeline.process(raw).snapshot
        assert snap.gold_treasury_roc == pytest.approx(0.25)
        assert snap.gold_change == pytest.approx(25.0)

    def test_gold_change_none_without_treasury_prices(self, pipeline, sample_raw):
        raw = dataclasses.replace(sample_raw, tlt_price=[])
        assert pipeline.process(raw).snapshot.gold_change is None

    def test_assessment(self, pipeline, sample_raw):
        assessment = pipeline.process(sample_raw).assessment
        assert assessment.stage == 0
        assert assessment.stage_name == "Pre-Crisis (Elevated Risk)"
        assert assessment.confidence == 74
        assert assessment.triggers == [
            "Japanese hedging spread negative",
            "Interest expense ratio at 20.2%",
            "Gold/Treasury ratio accelerating",
        ]

    def test_secondary(self, pipeline, sample_raw):
        secondary = pipeline.process(sample_raw).secondary
        assert secondary["vix"].zone.zone == Zone.NORMAL
        assert secondary["hy_spread"].value == pytest.approx(350.0)
        assert secondary["sofr_treasury_spread"].value == pytest.approx(10.0)
        assert secondary["sofr_treasury_spread"].zone.zone == Zone.NORMAL
        assert secondary["sofr"].value == 4.40
        assert secondary["sofr"].zone is None

    def test_breakevens(self, pipeline, sample_raw):
        be = pipeline.process(sample_raw).breakevens
        assert be.ten_year == 2.40
        assert be.five_year == 2.30

    def test_empty_data(self, pipeline):
        report = pipeline.process(RawSeriesBundle(as_of_date=date(2026, 1, 1)))
        assert all(r.value is None for r in report.indicators.values())
        assert all(r.zone.zone == Zone.UNKNOWN for r in report.indicators.values())
        assert report.indicators["cross_currency_basis"].extras["method"] == BasisMethod.UNAVAILABLE.value
        assert report.assessment.stage_name == "Pre-Crisis (Low Risk)"
        assert report.assessment.confidence == 50
        assert report.secondary["sofr_treasury_spread"].value is None

    def test_to_dict_format(self, pipeline, sample_raw):
        d = pipeline.process(sample_raw).to_dict()
        assert d["date"] == "2026-01-15"
        assert set(d) == {
            "date",
            "indicators",
            "secondary",
            "breakevens",
            "holdings",
            "central_bank_gold",
            "snapshot",
            "assessment",
        }
        assert d["indicators"]["japanese_hedging_spread"]["zone"]["zone"] == "CRITICAL"
        assert d["assessment"]["stage"] == 0

    def test_process_does_not_alert(self, pipeline, sample_raw):
        pipeline.process(sample_raw)
        assert pipeline.alerts.log == []

    def test_shared_cip_service(self, config, sample_raw):
        cip = CipBasisService(config.cip)
        pipeline = IndicatorPipeline(config, cip_service=cip)
        cip.update_policy_rates(ecb=2.50)
        basis = pipeline.process(sample_raw).indicators["cross_currency_basis"]
        assert basis.value == pytest.approx(-15 - 2.0 * 8)


class TestThresholdOverrides:
    def test_override_changes_zone(self, pipeline, sample_raw):
        cfg = pipeline.set_threshold_override("auction_tail", normal={"max": 1}, warning={"min": 1, "max": 3})
        assert cfg.thresholds.normal.max == 1
        assert pipeline.process(sample_raw).indicators["auction_tail"].zone.zone == Zone.WARNING

        assert pipeline.clear_threshold_override("auction_tail") is True
        assert pipeline.clear_threshold_override("auction_tail") is False
        assert pipeline.process(sample_raw).indicators["auction_tail"].zone.zone == Zone.NORMAL

    def test_overrides_merge(self, pipeline):
        pipeline.set_threshold_override("auction_tail", normal={"max": 1})
        cfg = pipeline.set_threshold_override("auction_tail", critical={"min": 8})
        assert cfg.thresholds.normal.max == 1
        assert cfg.thresholds.critical.min == 8
        assert cfg.thresholds.warning.min == 2

    def test_config_echoed_in_reading(self, pipeline, sample_raw):
        pipeline.set_threshold_override("gold_treasury_roc", warning={"min": 0.12, "max": 0.2})
        reading = pipeline.process(sample_raw).indicators["gold_treasury_roc"]
        assert reading.config.thresholds.warning.min == 0.12

    @pytest.mark.parametrize(
        "key,bands",
        [
            ("nope", {"normal": {"max": 1}}),
            ("auction_tail", {}),
            ("auction_tail", {"severe": {"min": 1}}),
            ("auction_tail", {"warning": {"min": 3, "max": 1}}),
            ("auction_tail", {"warning": {}}),
        ],
    )
    def test_rejected_override_leaves_state(self, pipeline, key, bands):
        with pytest.raises(ConfigError):
            pipeline.set_threshold_override(key, **bands)
        assert pipeline.effective_configs() == pipeline.config.indicators

    def test_effective_config_unknown(self, pipeline):
        with pytest.raises(ConfigError):
            pipeline.effective_config("nope")


class TestForeignHoldings:
    def test_report_carries_tic_summary(self, pipeline, sample_raw):
        tic = {
            "Japan": [TimePoint(date(2025, 11, 30), 1100.0), TimePoint(date(2025, 5, 30), 1000.0)],
            "China, Mainland": [TimePoint(date(2025, 11, 30), 700.0)],
            "Belgium": [TimePoint(date(2025, 11, 30), 400.0)],
        }
        report = pipeline.process(dataclasses.replace(sample_raw, tic_holdings=tic))
        assert report.holdings.japan.current == 1100.0
        assert report.holdings.japan.six_month_change == pytest.approx(10.0)
        assert report.holdings.china.current == pytest.approx(1100.0)
        assert report.holdings.total.current == pytest.approx(2200.0)
        assert report.to_dict()["holdings"]["china"]["components"]["belgium_proxy"] == 400.0

    def test_without_tic_data(self, pipeline, sample_raw):
        holdings = pipeline.process(sample_raw).holdings
        assert holdings.total.current is None
        assert holdings.data_lag_note


class TestCentralBankGold:
    def test_recorded_quarters_reach_report(self, pipeline, sample_raw):
        pipeline.record_central_bank_gold("2025-Q2", 170.0)
        summary = pipeline.record_central_bank_gold("2025-Q3", 220.0, {"Poland": 30.0})
        assert summary.rolling_12m_tonnes == pytest.approx(390.0)

        cb = pipeline.process(sample_raw).central_bank_gold
        assert cb.rolling_12m_tonnes == pytest.approx(390.0)
        assert cb.top_purchasers == {"Poland": 30.0}

    def test_rerecording_replaces_quarter(self, pipeline):
        pipeline.record_central_bank_gold("2025-Q3", 220.0)
        assert pipeline.record_central_bank_gold("2025-Q3", 200.0).rolling_12m_tonnes == 200.0

    def test_rejected_entry_leaves_state(self, pipeline):
        pipeline.record_central_bank_gold("2025-Q3", 220.0)
        with pytest.raises(ConfigError):
            pipeline.record_central_bank_gold("2025-Q4", float("inf"))
        assert [q.period for q in pipeline.central_bank_gold().quarters] == ["2025-Q3"]

    def test_empty_by_default(self, pipeline, sample_raw):
        assert pipeline.process(sample_raw).central_bank_gold.rolling_12m_tonnes is None


class TestHistoricalSeries:
    def test_auction_tail_history(self, pipeline, sample_raw):
        history = pipeline.historical_series(sample_raw, "auction_tail")
        assert [p.date for p in history] == [date(2025, 12, 11), date(2025, 11, 19), date(2025, 8, 1)]
        assert [p.value for p in history] == pytest.approx([1.0, 2.5, 10.0])

    def test_gold_roc_history(self, pipeline, sample_raw):
        history = pipeline.historical_series(sample_raw, "gold_treasury_roc")
        assert len(history) == 1
        assert history[0].value == pytest.approx(0.15)

    def test_hedging_spread_history(self, pipeline, sample_raw):
        history = pipeline.historical_series(sample_raw, "japanese_hedging_spread")
        assert history[0].date == date(2026, 1, 15)
        assert all(p.value == pytest.approx(-196.0) for p in history)

    def test_interest_ratio_history_skips_gaps(self, pipeline, sample_raw):
        history = pipeline.historical_series(sample_raw, "interest_expense_ratio")
        assert history[0].value == pytest.approx(950 / 4700)
        assert all(isinstance(p, TimePoint) and p.value is not None for p in history)

    def test_unknown_key(self, pipeline, sample_raw):
        with pytest.raises(ConfigError):
            pipeline.historical_series(sample_raw, "vix")


class TestRun:
    def test_run_uses_fetcher_and_alerts(self, config, sample_raw):
        fetcher = StubFetcher(sample_raw)
        pipeline = IndicatorPipeline(config, fetcher=fetcher)
        report = asyncio.run(pipeline.run(date(2026, 1, 15)))
        assert fetcher.requested == [date(2026, 1, 15)]
        assert report.assessment.confidence == 74
        # Hedging spread is CRITICAL on the first run
        assert [a.type for a in pipeline.alerts.log] == [CRITICAL_LEVEL]
        assert pipeline.alerts.log[0].indicator == "japanese_hedging_spread"

    def test_check_alerts_uses_overrides(self, pipeline, sample_raw):
        report = pipeline.process(sample_raw)
        assert [a.indicator for a in pipeline.check_alerts(report)] == ["japanese_hedging_spread"]

        pipeline.set_threshold_override("auction_tail", critical={"min": 1.5})
        alerts = pipeline.check_alerts(pipeline.process(sample_raw))
        assert [(a.indicator, a.type) for a in alerts] == [("auction_tail", CRITICAL_LEVEL)]
