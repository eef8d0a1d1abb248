"""
Core modules for Credits Forecast.

This package contains the pure calculations: currency conversion,
plan pricing, burn rate estimation, risk classification, margins,
capacity utilization and per-customer aggregation.
"""
