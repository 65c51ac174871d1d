"""
netdash - UniFi/UnPoller telemetry query and aggregation core

Builds validated InfluxQL statements, reads columnar responses and turns
them into totals, rate trends, per-entity time series and SSID summaries.
"""

__version__ = "0.1.0"
