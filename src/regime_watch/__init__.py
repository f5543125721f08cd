"""
REGIME WATCH - Monetary Regime Stress Monitor

REGIME WATCH answers one question only:
"How far along the path from a traditional financial crisis
to a monetary regime transition are we right now?"

Design Principles:
- Public data only (FRED, Treasury Fiscal Data, quotes)
- Missing data is None, never a guessed number
- Deterministic, rule-based
- Discrete zones per indicator, discrete stages (0-4) overall
- No forecasting, no persistence
"""

__version__ = "1.0.0"
