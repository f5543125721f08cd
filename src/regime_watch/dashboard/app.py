"""
REGIME WATCH Streamlit Dashboard.

Run with: streamlit run src/regime_watch/dashboard/app.py
"""

import sys
from pathlib import Path

# Ensure regime_watch is importable when run via `streamlit run`
_SRC_DIR = str(Path(__file__).resolve().parents[2])
if _SRC_DIR not in sys.path:
    sys.path.insert(0, _SRC_DIR)

import asyncio
from datetime import date

import streamlit as st

from regime_watch.config import ConfigError
from regime_watch.dashboard.components.history_chart import render_history_chart
from regime_watch.dashboard.components.indicator_cards import render_indicator_cards
from regime_watch.dashboard.components.stage_indicator import render_stage_indicator
from regime_watch.dashboard.components.trigger_panel import render_trigger_panel
from regime_watch.explain.generator import NA, describe_report, format_number, format_percent
from regime_watch.pipeline.indicators import IndicatorPipeline
from regime_watch.types import RawSeriesBundle


@st.cache_resource
def get_pipeline() -> IndicatorPipeline:
    return IndicatorPipeline()


@st.cache_data(ttl=60 * 60, show_spinner="Fetching market data...")
def load_raw(as_of: date) -> RawSeriesBundle:
    return asyncio.run(get_pipeline().fetcher.fetch(as_of))


def render_admin(pipeline: IndicatorPipeline) -> None:
    """CIP policy rate and calibration controls, plus central-bank gold entry."""
    st.header("CIP Basis Settings")
    rates = pipeline.cip.policy_rates
    ecb = st.number_input("ECB deposit rate (%)", value=float(rates.ecb), step=0.25)
    boj = st.number_input("BOJ policy rate (%)", value=float(rates.boj), step=0.05)
    if st.button("Update policy rates"):
        update = pipeline.cip.update_policy_rates(ecb=ecb, boj=boj)
        st.success(f"Policy rates updated, {len(update.cleared_keys)} cached values cleared")

    eur = pipeline.cip.calibration["eur"]
    offset = st.number_input("EUR base offset (bps)", value=float(eur.base_offset), step=1.0)
    if st.button("Update EUR calibration"):
        try:
            pipeline.cip.update_calibration("eur", base_offset=offset)
        except ConfigError as exc:
            st.error(str(exc))
        else:
            st.success("EUR calibration updated")

    st.header("Central Bank Gold")
    period = st.text_input("Quarter", value="2025-Q3")
    tonnes = st.number_input("Total purchases (tonnes)", value=0.0, step=1.0)
    if st.button("Record quarter"):
        try:
            summary = pipeline.record_central_bank_gold(period, tonnes)
        except ConfigError as exc:
            st.error(str(exc))
        else:
            st.success(f"Rolling 12m purchases: {format_number(summary.rolling_12m_tonnes, 0)}t")


def main() -> None:
    st.set_page_config(
        page_title="REGIME WATCH",
        layout="wide",
        initial_sidebar_state="expanded",
    )

    st.title("REGIME WATCH")
    st.markdown("**Monetary Regime Stress Monitor**")

    pipeline = get_pipeline()

    # Sidebar
    with st.sidebar:
        st.header("About REGIME WATCH")
        st.markdown(
            """
            Tracks five indicators of stress in the dollar-based
            monetary regime and maps them to a crisis stage.

            **Stages:**
            - **0**: Pre-Crisis (graded by concerns)
            - **1**: Traditional Financial Crisis
            - **2**: Intervention Phase
            - **3**: Credibility Crisis
            - **4**: Regime Transition

            **Design:**
            - Deterministic, rule-based
            - Missing data is shown as N/A, never guessed
            """
        )

        st.divider()
        render_admin(pipeline)

    as_of = st.sidebar.date_input("As of", value=date.today())
    raw = load_raw(as_of)
    report = pipeline.process(raw)

    # Row 1: Stage indicator + trigger panel
    col1, col2 = st.columns([1, 2])
    with col1:
        render_stage_indicator(report.assessment, report.date.isoformat())
    with col2:
        render_trigger_panel(describe_report(report))

    # Row 2: Indicator cards
    st.markdown("### Core Indicators")
    render_indicator_cards(list(report.indicators.values()))

    # Row 3: Secondary indicators and breakevens
    st.markdown("### Market Stress & Breakevens")
    cols = st.columns(len(report.secondary) + 2)
    for col, reading in zip(cols, report.secondary.values()):
        zone = reading.zone.zone.value if reading.zone else None
        col.metric(reading.name, format_number(reading.value), zone, delta_color="off")
    be = report.breakevens
    cols[-2].metric("10Y Breakeven", format_percent(be.ten_year, 2, is_fraction=False))
    cols[-1].metric(
        "30Y-5Y Slope",
        format_number(be.slope),
        "steepening" if be.slope_warning else None,
        delta_color="off",
    )

    # Row 4: Foreign holdings and central-bank gold
    st.markdown("### Foreign Holdings")
    holdings = report.holdings
    cols = st.columns(4)
    for col, h in zip(cols, [holdings.total, holdings.japan, holdings.china]):
        change = h.six_month_change
        col.metric(
            h.country,
            f"${h.current:,.0f}B" if h.current is not None else NA,
            f"{change:+.1f}% 6m" if change is not None else None,
        )
    cb_tonnes = report.central_bank_gold.rolling_12m_tonnes
    cols[3].metric("Central Bank Gold (12m)", f"{cb_tonnes:,.0f}t" if cb_tonnes is not None else NA)
    st.caption(f"{holdings.data_lag_note}. {holdings.china.note}.")

    # Row 5: History chart
    st.markdown("### Indicator History")
    key = st.selectbox(
        "Indicator",
        list(report.indicators),
        format_func=lambda k: report.indicators[k].config.name,
    )
    render_history_chart(pipeline.historical_series(raw, key), pipeline.effective_config(key))

    with st.expander("Raw Report"):
        st.json(report.to_dict())


if __name__ == "__main__":
    main()
