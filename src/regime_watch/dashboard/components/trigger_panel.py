"""
REGIME WATCH - Trigger Panel Component

Lists the readings and triggers behind the current stage.
"""

import streamlit as st


def render_trigger_panel(lines: list[str]) -> None:
    """Render the explanation lines; the first line is the stage headline."""
    st.markdown("### Triggers & Concerns")

    details = lines[1:]
    if not details or details == ["All indicators within normal ranges"]:
        st.success("No active triggers. All indicators within normal ranges.")
        return

    for line in details:
        st.markdown(f"- {line}")
