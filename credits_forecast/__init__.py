"""
Credits Forecast.

Burn-rate projection, risk classification and margin analysis for
credits-based partner billing.
"""

__version__ = "0.1.0"
