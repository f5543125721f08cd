"""
REGIME WATCH - Indicator Cards Component

One card per core indicator: zone, formatted value and gauge position.
"""

import streamlit as st

from regime_watch.explain.generator import format_indicator_value, gauge_position
from regime_watch.types import IndicatorReading


def render_indicator_cards(readings: list[IndicatorReading]) -> None:
    """Render core indicator cards in a row."""
    cols = st.columns(len(readings))

    for col, reading in zip(cols, readings):
        cfg = reading.config
        color = reading.zone.color
        position = gauge_position(reading.value, cfg.gauge_min, cfg.gauge_max)
        as_of = reading.as_of.isoformat() if reading.as_of else "N/A"
        with col:
            st.markdown(
                f"""
                <div style="
                    background: linear-gradient(135deg, {color}20, {color}10);
                    border-left: 4px solid {color};
                    padding: 1rem; border-radius: 0.5rem;
                ">
                    <div style="font-weight:bold; font-size:0.9rem;">{cfg.short_name}</div>
                    <div style="color:{color}; font-size:1.2rem; font-weight:bold;">{reading.zone.zone.value}</div>
                    <div style="font-size:0.9rem;">{format_indicator_value(reading.value, cfg)}</div>
                    <div style="background:#e5e7eb; height:6px; border-radius:3px; margin:0.4rem 0;">
                        <div style="background:{color}; width:{position:.0f}%; height:6px; border-radius:3px;"></div>
                    </div>
                    <div style="font-size:0.75rem; color:#9ca3af;">As of {as_of}</div>
                </div>
                """,
                unsafe_allow_html=True,
            )
            if reading.note:
                st.caption(reading.note)
