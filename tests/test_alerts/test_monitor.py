"""Tests for the threshold alert monitor."""

import dataclasses

import pytest

from regime_watch.alerts.monitor import (
    CRITICAL_LEVEL,
    THRESHOLD_BREACH,
    THRESHOLD_IMPROVEMENT,
    AlertMonitor,
)
from regime_watch.config import AlertConfig, MonitorConfig
from regime_watch.types import ThresholdBand, Zone


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def monitor(clock):
    return AlertMonitor(MonitorConfig(), clock=clock)


class TestTransitions:
    def test_first_check_has_no_transition(self, monitor):
        assert monitor.check({"interest_expense_ratio": 0.20}) == []

    def test_breach(self, monitor):
        monitor.check({"interest_expense_ratio": 0.15})
        alerts = monitor.check({"interest_expense_ratio": 0.20})
        assert len(alerts) == 1
        alert = alerts[0]
        assert alert.type == THRESHOLD_BREACH
        assert alert.previous_zone == Zone.NORMAL
        assert alert.new_zone == Zone.WARNING
        assert alert.direction == "worsening"
        assert alert.message == "Federal Interest Expense Ratio moved from NORMAL to WARNING"

    def test_improvement(self, monitor):
        monitor.check({"japanese_hedging_spread": -80})
        alerts = monitor.check({"japanese_hedging_spread": -20})
        assert [a.type for a in alerts] == [THRESHOLD_IMPROVEMENT]
        assert alerts[0].direction == "improving"

    def test_same_zone_no_alert(self, monitor):
        monitor.check({"auction_tail": 2.1})
        assert monitor.check({"auction_tail": 2.9}) == []

    def test_missing_previous_is_not_a_transition(self, monitor):
        monitor.check({"auction_tail": None})
        assert monitor.check({"auction_tail": 4.0}) == []

    def test_current_none_skipped(self, monitor):
        monitor.check({"auction_tail": 1.0})
        assert monitor.check({"auction_tail": None}) == []

    def test_gap_keeps_last_known_value(self, monitor):
        monitor.check({"interest_expense_ratio": 0.15})
        assert monitor.check({"interest_expense_ratio": None}) == []
        alerts = monitor.check({"interest_expense_ratio": 0.20})
        assert [a.type for a in alerts] == [THRESHOLD_BREACH]
        assert alerts[0].previous_value == 0.15
        assert alerts[0].previous_zone == Zone.NORMAL

    def test_missing_key_keeps_last_known_value(self, monitor):
        monitor.check({"interest_expense_ratio": 0.15, "auction_tail": 1.0})
        monitor.check({"auction_tail": 1.2})
        alerts = monitor.check({"interest_expense_ratio": 0.20})
        assert [a.type for a in alerts] == [THRESHOLD_BREACH]

    def test_override_configs(self, monitor):
        config = MonitorConfig().indicators["auction_tail"]
        strict = dataclasses.replace(
            config,
            thresholds=dataclasses.replace(
                config.thresholds,
                normal=ThresholdBand(max=1),
                warning=ThresholdBand(min=1, max=3),
            ),
        )
        monitor.check({"auction_tail": 0.5}, {"auction_tail": strict})
        alerts = monitor.check({"auction_tail": 1.5}, {"auction_tail": strict})
        assert [a.type for a in alerts] == [THRESHOLD_BREACH]


class TestCriticalLevel:
    def test_critical_alert_once_per_day(self, monitor, clock):
        first = monitor.check({"auction_tail": 6.0})
        assert [a.type for a in first] == [CRITICAL_LEVEL]
        assert "CRITICAL level: 6.00 bps" in first[0].message

        clock.now += 3600
        assert monitor.check({"auction_tail": 6.5}) == []

        clock.now += 24 * 3600
        assert [a.type for a in monitor.check({"auction_tail": 6.5})] == [CRITICAL_LEVEL]

    def test_breach_into_critical_raises_both(self, monitor):
        monitor.check({"gold_treasury_roc": 0.25})
        alerts = monitor.check({"gold_treasury_roc": 0.40})
        assert [a.type for a in alerts] == [THRESHOLD_BREACH, CRITICAL_LEVEL]
        assert "40.00%" in alerts[1].message


class TestLog:
    def test_newest_first(self, monitor, clock):
        monitor.check({"auction_tail": 1.0})
        monitor.check({"auction_tail": 2.5})
        clock.now += 10
        monitor.check({"auction_tail": 3.5})
        assert [a.new_zone for a in monitor.log] == [Zone.DANGER, Zone.WARNING]

    def test_log_capped(self, clock):
        config = dataclasses.replace(MonitorConfig(), alerts=AlertConfig(max_log_size=3))
        monitor = AlertMonitor(config, clock=clock)
        for i in range(5):
            monitor.check({"auction_tail": 1.0 if i % 2 == 0 else 2.5})
        assert len(monitor.log) == 3

    def test_clear(self, monitor):
        monitor.check({"auction_tail": 6.0})
        monitor.clear()
        assert monitor.log == []
        assert monitor.recent() == []
