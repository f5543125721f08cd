"""
REGIME WATCH - Stage Indicator Component

Semicircular gauge showing the crisis stage (0-4).
"""

import plotly.graph_objects as go
import streamlit as st

from regime_watch.types import StageAssessment

STAGE_COLORS = {
    0: "#10b981",
    1: "#f59e0b",
    2: "#f97316",
    3: "#ef4444",
    4: "#7c2d12",
}


def render_stage_indicator(assessment: StageAssessment, date_str: str) -> None:
    """Render semicircular gauge for the current stage."""
    value = assessment.stage * 20 + 10
    color = STAGE_COLORS.get(assessment.stage, "#6b7280")

    fig = go.Figure(
        go.Indicator(
            mode="gauge+number",
            value=value,
            number={"font": {"size": 1, "color": "rgba(0,0,0,0)"}},
            title={"text": f"REGIME WATCH - {date_str}", "font": {"size": 14}},
            gauge={
                "axis": {"range": [0, 100], "visible": False},
                "bar": {"color": "rgba(0,0,0,0)"},
                "bgcolor": "#f3f4f6",
                "steps": [
                    {"range": [stage * 20, stage * 20 + 20], "color": c}
                    for stage, c in STAGE_COLORS.items()
                ],
                "threshold": {
                    "line": {"color": "#1f2937", "width": 4},
                    "thickness": 0.8,
                    "value": value,
                },
            },
        )
    )

    fig.update_layout(
        paper_bgcolor="rgba(0,0,0,0)",
        plot_bgcolor="rgba(0,0,0,0)",
        height=250,
        margin=dict(l=20, r=20, t=50, b=10),
    )

    st.plotly_chart(fig, use_container_width=True)

    st.markdown(
        f"<h2 style='text-align:center; color:{color};'>{assessment.stage_name}</h2>"
        f"<p style='text-align:center; color:#6b7280;'>Confidence: {assessment.confidence}%</p>",
        unsafe_allow_html=True,
    )
