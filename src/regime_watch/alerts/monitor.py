"""
REGIME WATCH - Threshold Alert Monitor

Compares each check's indicator values with the previous check's and
raises alerts on zone transitions and on CRITICAL readings. The alert
log lives in memory for the lifetime of the monitor.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from regime_watch.config import AlertConfig, MonitorConfig
from regime_watch.explain.generator import format_indicator_value
from regime_watch.types import Alert, IndicatorConfig, Zone
from regime_watch.zones.evaluator import evaluate_zone, zone_severity

logger = logging.getLogger(__name__)

THRESHOLD_BREACH = "THRESHOLD_BREACH"
THRESHOLD_IMPROVEMENT = "THRESHOLD_IMPROVEMENT"
CRITICAL_LEVEL = "CRITICAL_LEVEL"


class AlertMonitor:
    """
    Zone-transition alerts for the five core indicators.

    A transition is only reported between two known zones. CRITICAL
    readings alert at most once per indicator per repeat window.
    """

    def __init__(
        self,
        config: MonitorConfig | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.config = config or MonitorConfig()
        self._clock = clock
        self._previous: dict[str, Optional[float]] = {}
        self._log: list[Alert] = []

    @property
    def alert_config(self) -> AlertConfig:
        return self.config.alerts

    @property
    def log(self) -> list[Alert]:
        """Alerts newest first."""
        return list(self._log)

    def recent(self, limit: int = 50) -> list[Alert]:
        return self._log[:limit]

    def clear(self) -> None:
        self._log.clear()
        self._previous.clear()

    def check(
        self,
        values: dict[str, Optional[float]],
        configs: dict[str, IndicatorConfig] | None = None,
    ) -> list[Alert]:
        """
        Evaluate current values and record new alerts.

        Args:
            values: Current value per indicator key. None = unavailable.
            configs: Effective indicator configs (e.g. with threshold
                overrides). Defaults to the monitor's configuration.

        Returns:
            Alerts raised by this check.
        """
        configs = configs or self.config.indicators
        now = self._clock()
        alerts: list[Alert] = []

        for key, cfg in configs.items():
            current = values.get(key)
            if current is None:
                continue
            previous = self._previous.get(key)

            current_zone = evaluate_zone(current, cfg.thresholds).zone
            previous_zone = evaluate_zone(previous, cfg.thresholds).zone

            if current_zone != previous_zone and previous_zone != Zone.UNKNOWN:
                worsening = zone_severity(current_zone) > zone_severity(previous_zone)
                alerts.append(
                    Alert(
                        id=f"{key}-{int(now * 1000)}",
                        type=THRESHOLD_BREACH if worsening else THRESHOLD_IMPROVEMENT,
                        indicator=key,
                        indicator_name=cfg.name,
                        message=f"{cfg.name} moved from {previous_zone.value} to {current_zone.value}",
                        timestamp=now,
                        new_zone=current_zone,
                        current_value=current,
                        previous_zone=previous_zone,
                        previous_value=previous,
                        direction="worsening" if worsening else "improving",
                    )
                )

            if current_zone == Zone.CRITICAL and not self._recent_critical(key, now):
                alerts.append(
                    Alert(
                        id=f"{key}-critical-{int(now * 1000)}",
                        type=CRITICAL_LEVEL,
                        indicator=key,
                        indicator_name=cfg.name,
                        message=f"{cfg.name} is at CRITICAL level: {format_indicator_value(current, cfg)}",
                        timestamp=now,
                        new_zone=current_zone,
                        current_value=current,
                    )
                )

        # a fetch gap keeps the last known value
        for key, value in values.items():
            if value is not None:
                self._previous[key] = value

        if alerts:
            self._log = (list(reversed(alerts)) + self._log)[: self.alert_config.max_log_size]
            for alert in alerts:
                logger.warning(f"[{alert.type}] {alert.message}")
        return alerts

    def _recent_critical(self, key: str, now: float) -> bool:
        cutoff = now - self.alert_config.critical_repeat_seconds
        return any(
            a.indicator == key and a.type == CRITICAL_LEVEL and a.timestamp > cutoff
            for a in self._log
        )
