#!/usr/bin/env python3
"""
REGIME WATCH daily assessment.

Usage:
    python scripts/run_daily.py
    python scripts/run_daily.py --date 2026-02-05
    python scripts/run_daily.py --config config/thresholds.json
    python scripts/run_daily.py --json
    python scripts/run_daily.py -v
"""

import argparse
import asyncio
import json
import logging
import sys
from datetime import datetime
from pathlib import Path

# Ensure regime_watch is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from regime_watch.config import ConfigError, load_config
from regime_watch.explain.generator import describe_report, format_indicator_value
from regime_watch.pipeline.indicators import IndicatorPipeline


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Run REGIME WATCH indicator and stage assessment",
    )
    parser.add_argument(
        "--date", "-d", type=str, default=None, help="Date (YYYY-MM-DD), default: today"
    )
    parser.add_argument("--config", "-c", type=str, default=None, help="Threshold overrides (JSON)")
    parser.add_argument("--json", "-j", action="store_true", help="Output JSON only")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")
    args = parser.parse_args()

    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    trade_date = None
    if args.date:
        try:
            trade_date = datetime.strptime(args.date, "%Y-%m-%d").date()
        except ValueError:
            print(f"Error: Invalid date format '{args.date}'. Use YYYY-MM-DD.")
            return 1

    config = None
    if args.config:
        try:
            config = load_config(args.config)
        except (ConfigError, OSError) as exc:
            print(f"Error: {exc}")
            return 1

    pipeline = IndicatorPipeline(config=config)
    report = asyncio.run(pipeline.run(trade_date))

    if args.json:
        print(json.dumps(report.to_dict(), indent=2))
    else:
        print()
        print("=" * 60)
        print("REGIME WATCH ASSESSMENT")
        print("=" * 60)
        print(f"Date:       {report.date}")
        print(f"Stage:      {report.assessment.stage_name}")
        print(f"Confidence: {report.assessment.confidence}%")
        print("-" * 60)
        print("Indicators:")
        for reading in report.indicators.values():
            value = format_indicator_value(reading.value, reading.config)
            print(f"  {reading.config.short_name:<20} {value:>14}  {reading.zone.zone.value}")
        print("-" * 60)
        print("Foreign holdings ($bn, 6m change):")
        for h in (report.holdings.total, report.holdings.japan, report.holdings.china):
            current = f"{h.current:,.0f}" if h.current is not None else "N/A"
            change = f"{h.six_month_change:+.1f}%" if h.six_month_change is not None else "N/A"
            print(f"  {h.country:<20} {current:>14}  {change}")
        print("-" * 60)
        for line in describe_report(report)[1:]:
            print(f"  - {line}")
        print("=" * 60)

    return 0


if __name__ == "__main__":
    sys.exit(main())
