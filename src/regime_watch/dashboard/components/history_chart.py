"""
REGIME WATCH - History Chart Component

Indicator time series with zone bands shaded behind it.
"""

import pandas as pd
import plotly.graph_objects as go
import streamlit as st

from regime_watch.types import IndicatorConfig, TimePoint, Zone
from regime_watch.zones.evaluator import ZONE_COLORS, ZONE_PRIORITY


def history_frame(series: list[TimePoint], config: IndicatorConfig) -> pd.DataFrame:
    """Series as an ascending DataFrame with display-scaled values."""
    multiplier = config.display_multiplier or 1
    df = pd.DataFrame(
        {
            "date": pd.to_datetime([p.date for p in series]),
            "value": [p.value * multiplier if p.value is not None else None for p in series],
        }
    )
    return df.dropna().sort_values("date")


def render_history_chart(series: list[TimePoint], config: IndicatorConfig) -> None:
    """Render an indicator history line over its threshold bands."""
    df = history_frame(series, config)
    if df.empty:
        st.info(f"No history available for {config.name}.")
        return

    multiplier = config.display_multiplier or 1
    lo = min(df["value"].min(), config.gauge_min * multiplier)
    hi = max(df["value"].max(), config.gauge_max * multiplier)

    fig = go.Figure()
    for name in ZONE_PRIORITY:
        band = config.thresholds.band(name)
        if band is None:
            continue
        y0 = band.min * multiplier if band.min is not None else lo
        y1 = band.max * multiplier if band.max is not None else hi
        fig.add_hrect(y0=y0, y1=y1, fillcolor=ZONE_COLORS[Zone[name.upper()]], opacity=0.12, line_width=0)

    fig.add_trace(
        go.Scatter(
            x=df["date"],
            y=df["value"],
            mode="lines",
            name=config.short_name,
            line=dict(color="#1f2937", width=2),
        )
    )

    fig.update_layout(
        yaxis=dict(title=config.unit, range=[lo, hi]),
        xaxis_title="Date",
        height=350,
        margin=dict(l=0, r=0, t=30, b=0),
        showlegend=False,
    )

    st.plotly_chart(fig, use_container_width=True)
