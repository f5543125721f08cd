"""
REGIME WATCH - Indicator Pipeline Orchestration

Flow: ingest -> indicators -> zones -> snapshot -> stage assessment -> alerts

The pipeline.run() method is the single async entry point.
All processing after ingest is synchronous.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from datetime import date
from typing import Optional

from regime_watch.alerts.monitor import AlertMonitor
from regime_watch.cip.service import CipBasisService
from regime_watch.classifier.engine import assess_stage
from regime_watch.config import ZONE_NAMES, ConfigError, MonitorConfig, parse_band
from regime_watch.features.auctions import auction_tail, auction_tail_metrics, long_dated_auctions
from regime_watch.features.breakevens import breakeven_metrics
from regime_watch.features.fiscal import interest_expense_metrics, interest_ratio_history
from regime_watch.features.gold import gold_treasury_metrics, ratio_roc_history
from regime_watch.features.holdings import (
    central_bank_gold_entry,
    central_bank_gold_summary,
    foreign_holdings_summary,
)
from regime_watch.features.trends import (
    latest_point,
    percent_change_over_months,
    twelve_month_change,
)
from regime_watch.ingest.fetcher import MacroSeriesFetcher
from regime_watch.types import (
    Alert,
    CentralBankGold,
    CentralBankGoldEntry,
    IndicatorConfig,
    IndicatorReading,
    IndicatorReport,
    IndicatorSnapshot,
    RawSeriesBundle,
    SecondaryReading,
    ThresholdBand,
    TimePoint,
)
from regime_watch.zones.evaluator import evaluate_ladder, evaluate_zone, merge_thresholds

logger = logging.getLogger(__name__)

AUCTION_HISTORY_MONTHS = 24


def _to_bps(value: Optional[float]) -> Optional[float]:
    return value * 100 if value is not None else None


def _to_percent(value: Optional[float]) -> Optional[float]:
    return value * 100 if value is not None else None


def _millions_to_billions(value: Optional[float]) -> Optional[float]:
    return value / 1000 if value is not None else None


class IndicatorPipeline:
    """
    REGIME WATCH indicator pipeline.

    Owns the process-wide mutable state besides the CIP service:
    per-indicator threshold overrides, hand-entered central-bank gold
    purchases and the alert monitor.
    """

    def __init__(
        self,
        config: MonitorConfig | None = None,
        cip_service: CipBasisService | None = None,
        fetcher: MacroSeriesFetcher | None = None,
    ) -> None:
        self.config = config or MonitorConfig()
        self.cip = cip_service or CipBasisService(self.config.cip)
        self.fetcher = fetcher or MacroSeriesFetcher(config=self.config)
        self.alerts = AlertMonitor(self.config)
        self._overrides: dict[str, dict[str, ThresholdBand]] = {}
        self._central_bank_gold: list[CentralBankGoldEntry] = []

    async def run(self, as_of_date: date | None = None) -> IndicatorReport:
        """
        Run the full pipeline for a given date.

        This is the only async entry point. Calls the fetcher,
        then hands off to synchronous processing.

        Args:
            as_of_date: Target date (default: today).

        Returns:
            IndicatorReport with readings, snapshot and stage assessment.
        """
        as_of_date = as_of_date or date.today()
        logger.info(f"REGIME WATCH pipeline starting for {as_of_date}")

        # Step 1: Ingest (async)
        raw = await self.fetcher.fetch(as_of_date)
        logger.info("Ingest complete")

        # Steps 2-5: Synchronous processing
        report = self.process(raw)

        # Step 6: Alerts
        self.check_alerts(report)

        logger.info(
            f"REGIME WATCH {as_of_date}: {report.assessment.stage_name} "
            f"[{report.assessment.confidence}%] triggers={report.assessment.triggers}"
        )
        return report

    def process(self, raw: RawSeriesBundle) -> IndicatorReport:
        """
        Synchronous processing: indicators -> zones -> snapshot -> assessment.

        Can be called independently for testing without async/API calls.

        Args:
            raw: Raw series from ingest.

        Returns:
            IndicatorReport.
        """
        # Step 2: Core indicators with zones
        indicators = self._compute_indicators(raw)

        # Step 3: Secondary market indicators
        secondary = self._compute_secondary(raw)

        # Step 4: Snapshot
        core_values = {key: reading.value for key, reading in indicators.items()}
        snapshot = self.build_snapshot(raw, core_values)

        # Step 5: Stage assessment
        assessment = assess_stage(snapshot, self.config.stage)

        return IndicatorReport(
            date=raw.as_of_date,
            indicators=indicators,
            secondary=secondary,
            breakevens=breakeven_metrics(raw.breakeven_5y, raw.breakeven_10y, self.config.breakevens),
            holdings=foreign_holdings_summary(raw.tic_holdings),
            central_bank_gold=self.central_bank_gold(),
            snapshot=snapshot,
            assessment=assessment,
        )

    def check_alerts(self, report: IndicatorReport) -> list[Alert]:
        """Feed a report's core values to the alert monitor using effective thresholds."""
        values = {key: reading.value for key, reading in report.indicators.items()}
        return self.alerts.check(values, self.effective_configs())

    def build_snapshot(self, raw: RawSeriesBundle, core_values: dict[str, Optional[float]]) -> IndicatorSnapshot:
        """
        Assemble the stage classifier input.

        Args:
            raw: Raw series (market stress and macro series).
            core_values: Current core indicator values keyed by indicator key.

        Returns:
            IndicatorSnapshot. Units: bps for spreads, fraction for ratios,
            percent for 12-month changes, $bn for the Fed balance sheet.
        """
        vix = latest_point(raw.vix)
        hy = latest_point(raw.hy_spread)
        breakeven = latest_point(raw.breakeven_10y)
        return IndicatorSnapshot(
            hedging_spread=core_values.get("japanese_hedging_spread"),
            basis_swap=core_values.get("cross_currency_basis"),
            auction_tail=core_values.get("auction_tail"),
            gold_treasury_roc=core_values.get("gold_treasury_roc"),
            interest_ratio=core_values.get("interest_expense_ratio"),
            vix=vix.value if vix else None,
            hy_spread=_to_bps(hy.value) if hy else None,
            dollar_change=percent_change_over_months(raw.dollar_index, 12),
            fed_balance_sheet_change=_millions_to_billions(twelve_month_change(raw.fed_balance_sheet)),
            inflation_breakeven=breakeven.value if breakeven else None,
            gold_change=_to_percent(core_values.get("gold_treasury_roc")),
            foreign_holdings_change=percent_change_over_months(raw.foreign_holdings, 12),
            cpi_annualized=percent_change_over_months(raw.cpi, 12),
        )

    def historical_series(self, raw: RawSeriesBundle, key: str) -> list[TimePoint]:
        """Charting series for one core indicator, newest first."""
        if key == "japanese_hedging_spread":
            return self.cip.japanese_hedging_spread(raw.us10y, raw.jgb10y, raw.fed_funds).history
        if key == "cross_currency_basis":
            return self.cip.basis_swap("eur", raw.fed_funds).history
        if key == "auction_tail":
            auctions = long_dated_auctions(raw.auctions, raw.as_of_date, AUCTION_HISTORY_MONTHS)
            return [
                TimePoint(date=a.auction_date, value=auction_tail(a.high_yield, a.when_issued_yield))
                for a in auctions
                if a.high_yield is not None and a.when_issued_yield is not None
            ]
        if key == "gold_treasury_roc":
            return ratio_roc_history(gold_treasury_metrics(raw.gold_price, raw.tlt_price).history, 12)
        if key == "interest_expense_ratio":
            history = interest_ratio_history(raw.interest_expense_monthly, raw.receipts_monthly)
            return [p for p in history if p.value is not None]
        raise ConfigError(f"Unknown indicator: {key}")

    # --- Threshold overrides ---

    def set_threshold_override(self, key: str, **bands) -> IndicatorConfig:
        """
        Override zone bands for one indicator, e.g. warning={"min": -40, "max": 0}.

        Raises:
            ConfigError: unknown indicator, unknown zone or malformed band.
                Existing overrides are untouched.
        """
        if key not in self.config.indicators:
            raise ConfigError(f"Unknown indicator: {key}")
        if not bands:
            raise ConfigError(f"{key}: no threshold bands given")
        unknown = set(bands) - set(ZONE_NAMES)
        if unknown:
            raise ConfigError(f"{key}: unknown zones {sorted(unknown)}")

        parsed = {name: parse_band(raw, f"overrides.{key}.{name}") for name, raw in bands.items()}
        merged = dict(self._overrides.get(key, {}))
        merged.update(parsed)
        self._overrides[key] = merged

        logger.info(f"Threshold override for {key}: {sorted(merged)}")
        return self.effective_config(key)

    def clear_threshold_override(self, key: str) -> bool:
        removed = self._overrides.pop(key, None) is not None
        if removed:
            logger.info(f"Threshold override for {key} cleared")
        return removed

    def effective_config(self, key: str) -> IndicatorConfig:
        """Indicator config with any threshold override merged in."""
        if key not in self.config.indicators:
            raise ConfigError(f"Unknown indicator: {key}")
        base = self.config.indicators[key]
        override = self._overrides.get(key)
        if not override:
            return base
        return dataclasses.replace(base, thresholds=merge_thresholds(base.thresholds, override))

    def effective_configs(self) -> dict[str, IndicatorConfig]:
        return {key: self.effective_config(key) for key in self.config.indicators}

    # --- Central-bank gold purchases ---

    def record_central_bank_gold(
        self,
        period: str,
        total_tonnes: float,
        top_purchasers: dict | None = None,
    ) -> CentralBankGold:
        """
        Record one quarter of central-bank gold purchases, e.g. period="2025-Q3".

        Re-recording a period replaces it.

        Raises:
            ConfigError: malformed period, tonnage or purchaser map.
        """
        entry = central_bank_gold_entry(period, total_tonnes, top_purchasers)
        self._central_bank_gold = [e for e in self._central_bank_gold if e.period != entry.period] + [entry]
        summary = self.central_bank_gold()
        logger.info(
            f"Central bank gold {entry.period}: {entry.total_tonnes}t, "
            f"rolling 12m {summary.rolling_12m_tonnes}t"
        )
        return summary

    def central_bank_gold(self) -> CentralBankGold:
        return central_bank_gold_summary(self._central_bank_gold)

    # --- Internals ---

    def _reading(
        self,
        key: str,
        value: Optional[float],
        as_of: Optional[date],
        extras: dict | None = None,
        note: Optional[str] = None,
    ) -> IndicatorReading:
        cfg = self.effective_config(key)
        return IndicatorReading(
            key=key,
            value=value,
            as_of=as_of,
            zone=evaluate_zone(value, cfg.thresholds),
            config=cfg,
            extras=extras or {},
            note=note,
        )

    def _compute_indicators(self, raw: RawSeriesBundle) -> dict[str, IndicatorReading]:
        """Compute the five core indicators from raw data."""
        spread = self.cip.japanese_hedging_spread(raw.us10y, raw.jgb10y, raw.fed_funds)
        basis = self.cip.basis_swap("eur", raw.fed_funds)
        tails = auction_tail_metrics(raw.auctions, raw.as_of_date, self.config.ingest.auction_lookback_months)
        gold = gold_treasury_metrics(raw.gold_price, raw.tlt_price)
        fiscal = interest_expense_metrics(raw.interest_expense_monthly, raw.receipts_monthly)

        readings = [
            self._reading(
                "japanese_hedging_spread",
                spread.current,
                spread.as_of,
                extras={
                    "us10y": spread.us10y,
                    "jgb10y": spread.jgb10y,
                    "fx_hedge_cost": spread.fx_hedge_cost,
                    "six_month_change": spread.six_month_change,
                    "method": spread.method.value,
                },
            ),
            self._reading(
                "cross_currency_basis",
                basis.current,
                basis.as_of,
                extras={"pair": basis.pair, "term": basis.term, "method": basis.method.value},
                note=basis.methodology_note,
            ),
            self._reading(
                "auction_tail",
                tails.average_tail,
                tails.auctions[0].auction_date if tails.auctions else None,
                extras={
                    "last_20y_tail": tails.last_20y_tail,
                    "last_30y_tail": tails.last_30y_tail,
                    "auction_count": len(tails.auctions),
                },
            ),
            self._reading(
                "gold_treasury_roc",
                gold.roc_12m,
                gold.as_of,
                extras={
                    "current_ratio": gold.current_ratio,
                    "gold_price": gold.gold_price,
                    "treasury_price": gold.treasury_price,
                    "roc_6m": gold.roc_6m,
                },
            ),
            self._reading(
                "interest_expense_ratio",
                fiscal.ratio,
                fiscal.as_of,
                extras={
                    "ttm_interest_expense": fiscal.ttm_interest_expense,
                    "ttm_receipts": fiscal.ttm_receipts,
                },
            ),
        ]
        return {r.key: r for r in readings}

    def _compute_secondary(self, raw: RawSeriesBundle) -> dict[str, SecondaryReading]:
        """VIX, HY spread and SOFR-Treasury spread on flat ladders; SOFR level unclassified."""
        ladders = self.config.secondary
        vix = latest_point(raw.vix)
        hy = latest_point(raw.hy_spread)
        sofr = latest_point(raw.sofr)
        bill = latest_point(raw.tbill_3m)

        vix_value = vix.value if vix else None
        hy_value = _to_bps(hy.value) if hy else None
        sofr_spread = None
        if sofr is not None and bill is not None:
            sofr_spread = (sofr.value - bill.value) * 100

        readings = [
            SecondaryReading("vix", "VIX", vix_value, vix.date if vix else None, evaluate_ladder(vix_value, ladders.vix)),
            SecondaryReading(
                "hy_spread",
                "High Yield Spread (bps)",
                hy_value,
                hy.date if hy else None,
                evaluate_ladder(hy_value, ladders.hy_spread),
            ),
            SecondaryReading(
                "sofr_treasury_spread",
                "SOFR-Treasury Spread (bps)",
                sofr_spread,
                min(sofr.date, bill.date) if sofr and bill else None,
                evaluate_ladder(sofr_spread, ladders.sofr_treasury_spread),
            ),
            SecondaryReading("sofr", "SOFR", sofr.value if sofr else None, sofr.date if sofr else None),
        ]
        return {r.key: r for r in readings}


def run_sync(as_of_date: date | None = None, config: MonitorConfig | None = None) -> IndicatorReport:
    """Synchronous convenience wrapper for CLI usage."""
    pipeline = IndicatorPipeline(config=config)
    return asyncio.run(pipeline.run(as_of_date))
